from shared.pagination import MAX_PAGE_SIZE, Pagination


class TestPagination:
    def test_defaults(self):
        pagination = Pagination.build(None, None)
        assert (pagination.page, pagination.limit, pagination.skip) == (1, 10, 0)

    def test_limit_is_clamped(self):
        assert Pagination.build(1, 10_000).limit == MAX_PAGE_SIZE
        assert Pagination.build(0, 0, default_limit=12).limit == 12

    def test_skip(self):
        assert Pagination.build(3, 20).skip == 40

    def test_to_dict(self):
        pagination = Pagination.build(2, 10).with_total(25)

        assert pagination.to_dict() == {
            "current_page": 2,
            "total_pages": 3,
            "total_items": 25,
            "items_per_page": 10,
            "has_next": True,
            "has_prev": True,
        }

    def test_empty_result(self):
        pagination = Pagination.build(1, 10).with_total(0)
        assert pagination.pages == 0
        assert not pagination.has_next
        assert not pagination.has_prev
