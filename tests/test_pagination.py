import pytest

from classroom.services.pagination import (
    ELLIPSIS,
    Paginator,
    count_pages,
    item_range,
    paginate,
    visible_pages,
)


@pytest.mark.parametrize(
    "total_items,page_size,expected",
    [
        (95, 10, 10),
        (100, 10, 10),
        (101, 10, 11),
        (1, 25, 1),
        (0, 10, 0),
    ],
)
def test_count_pages_rounds_up(total_items, page_size, expected):
    assert count_pages(total_items, page_size) == expected


def test_item_range_on_middle_and_last_page():
    assert item_range(95, 10, 3) == (21, 30)
    assert item_range(95, 10, 10) == (91, 95)


def test_item_range_is_zero_when_empty():
    assert item_range(0, 10, 1) == (0, 0)


def test_paginator_reports_the_visible_slice():
    p = Paginator(95, page_size=10, current_page=3)
    assert p.total_pages == 10
    assert p.start_item == 21
    assert p.end_item == 30
    assert p.has_previous
    assert p.has_next


def test_out_of_range_pages_are_ignored():
    p = Paginator(95, page_size=10, current_page=4)

    assert p.go_to(0) is False
    assert p.go_to(11) is False
    assert p.current_page == 4

    assert p.go_to(10) is True
    assert p.next() is False
    assert p.current_page == 10


def test_navigation_helpers():
    p = Paginator(50, page_size=10)
    assert not p.has_previous

    assert p.next()
    assert p.current_page == 2
    assert p.last()
    assert p.current_page == 5
    assert p.previous()
    assert p.current_page == 4
    assert p.first()
    assert p.current_page == 1
    assert p.previous() is False


def test_changing_page_size_goes_back_to_first_page():
    p = Paginator(95, page_size=10, current_page=7)
    p.set_page_size(25)

    assert p.current_page == 1
    assert p.page_size == 25
    assert p.total_pages == 4


def test_non_positive_page_size_is_ignored():
    p = Paginator(95, page_size=10, current_page=2)
    p.set_page_size(0)
    assert p.page_size == 10
    assert p.current_page == 2


def test_new_total_resets_to_first_page():
    p = Paginator(95, page_size=10, current_page=5)
    p.set_total_items(12)
    assert p.current_page == 1
    assert p.total_pages == 2


def test_empty_collection():
    p = Paginator(0, page_size=10)
    assert p.total_pages == 0
    assert p.current_page == 1
    assert (p.start_item, p.end_item) == (0, 0)
    assert p.visible_pages == []
    assert not p.has_next


def test_visible_pages_near_start():
    assert visible_pages(1, 10) == [1, 2, 3, ELLIPSIS, 10]


def test_visible_pages_in_the_middle():
    assert visible_pages(5, 10) == [1, ELLIPSIS, 3, 4, 5, 6, 7, ELLIPSIS, 10]


def test_visible_pages_near_end():
    assert visible_pages(10, 10) == [1, ELLIPSIS, 8, 9, 10]


def test_visible_pages_without_gaps():
    assert visible_pages(3, 5) == [1, 2, 3, 4, 5]
    assert visible_pages(4, 10) == [1, 2, 3, 4, 5, 6, ELLIPSIS, 10]


def test_visible_pages_single_page():
    assert visible_pages(1, 1) == [1]


def test_paginate_slices_items():
    page = paginate(list(range(95)), page=3, page_size=10)

    assert page.items == list(range(20, 30))
    assert page.total_items == 95
    assert page.total_pages == 10
    assert (page.start_item, page.end_item) == (21, 30)


def test_paginate_clamps_page_number():
    assert paginate(list(range(95)), page=99, page_size=10).current_page == 10
    assert paginate(list(range(95)), page=-3, page_size=10).current_page == 1


def test_paginate_empty():
    page = paginate([], page=3, page_size=10)
    assert page.items == []
    assert page.current_page == 1
    assert page.total_pages == 0
    assert page.visible_pages == []
