import random

import pytest

from matchmycv.rendering import build_layout, page_breaks, paginate, paginate_layout
from conftest import SAMPLE_CV


def _long_cv(n_jobs=12, bullets=6):
    cv = dict(SAMPLE_CV)
    cv["experience"] = [
        {"title": f"Engineer {i}", "company": f"Company {i}", "duration": "2010 - 2012",
         "bullets": [f"Delivered project {i}.{j} that improved throughput by {j * 5}% across teams"
                     for j in range(bullets)]}
        for i in range(n_jobs)
    ]
    return cv


def test_every_block_once_in_order():
    rng = random.Random(7)
    for _ in range(50):
        heights = [rng.uniform(0, 120) for _ in range(rng.randint(0, 60))]
        pages = paginate(heights, 300)
        flat = [i for page in pages for i in page]
        assert flat == list(range(len(heights)))


def test_no_page_exceeds_available_unless_single_block():
    rng = random.Random(11)
    for _ in range(50):
        heights = [rng.uniform(0, 400) for _ in range(40)]
        for page in paginate(heights, 300):
            used = sum(heights[i] for i in page)
            assert used <= 300 or len(page) == 1


def test_oversized_block_sits_alone():
    pages = paginate([50, 900, 50], 300)
    assert pages == [[0], [1], [2]]


def test_oversized_first_block_does_not_loop():
    assert paginate([1000], 300) == [[0]]
    assert paginate([1000, 1000], 300) == [[0], [1]]


def test_exact_fit_stays_on_page():
    assert paginate([100, 100, 100, 1], 300) == [[0, 1, 2], [3]]


def test_empty_and_invalid_input():
    assert paginate([], 300) == []
    with pytest.raises(ValueError):
        paginate([10], 0)
    with pytest.raises(ValueError):
        paginate([10, -1], 300)


def test_page_breaks():
    assert page_breaks([[0, 1], [2], [3, 4]]) == [2, 3]
    assert page_breaks([[0]]) == []


def test_layout_pagination_is_deterministic():
    cv = _long_cv()
    first = [p.indices for p in paginate_layout(build_layout(cv, "standard", {"paperSize": "a4"}))]
    second = [p.indices for p in paginate_layout(build_layout(cv, "standard", {"paperSize": "a4"}))]
    assert first == second
    assert len(first) > 1


@pytest.mark.parametrize("settings", [
    {"paperSize": "letter"},
    {"paperSize": "legal"},
    {"margins": "narrow"},
    {"margins": "wide", "paperSize": "letter"},
])
def test_paper_and_margins_only_move_breaks(settings):
    cv = _long_cv()
    base = build_layout(cv, "standard", {"paperSize": "a4", "margins": "normal"})
    other = build_layout(cv, "standard", settings)
    assert [(b.key, b.text) for b in base.blocks] == [(b.key, b.text) for b in other.blocks]

    for layout in (base, other):
        pages = paginate_layout(layout)
        assert [b.key for p in pages for b in p.blocks] == [b.key for b in layout.blocks]
        for p in pages:
            assert p.height <= layout.geometry.content_height or len(p.blocks) == 1
