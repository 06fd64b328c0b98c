import pytest
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.utils.globals import current_domain
from protean.utils.query import Q

from catalogue.product.product import Product
from identity.user.user import User


@pytest.fixture
def provider():
    return current_domain.providers["default"]


@pytest.fixture
def products(make_product):
    make_product(name="Red Kettle", price=25.0, stock=3, brand="Acme", tags=["kitchen", "red"])
    make_product(name="Blue Mug", price=8.0, stock=0, brand="Acme", tags=["kitchen"])
    make_product(name="Desk Lamp", price=40.0, stock=12, brand="Lumo", tags=["office"])
    return current_domain.repository_for(Product)


class TestDocumentMapping:
    def test_identity_is_stored_as_document_id(self, provider, make_product):
        product = make_product(name="Kettle")

        document = provider.database["products"].find_one({"_id": product.id})
        assert document["name"] == "Kettle"
        assert "id" not in document

    def test_value_objects_are_flattened(self, provider, make_product):
        product = make_product(name="Kettle")

        document = provider.database["products"].find_one({"_id": product.id})
        assert document["rating_average"] == 0.0
        assert document["rating_count"] == 0

    def test_round_trip_through_repository(self, make_product):
        product = make_product(name="Kettle", price=12.5, tags=["kitchen"])

        loaded = current_domain.repository_for(Product).get(product.id)
        assert loaded.name == "Kettle"
        assert loaded.price == 12.5
        assert loaded.tags == ["kitchen"]
        assert loaded.rating.count == 0


class TestLookups:
    def test_icontains(self, products):
        names = {p.name for p in products.query.filter(name__icontains="KETTLE").all()}
        assert names == {"Red Kettle"}

    def test_in_matches_array_elements(self, products):
        names = {p.name for p in products.query.filter(tags__in=["office"]).all()}
        assert names == {"Desk Lamp"}

    def test_range(self, products):
        names = {p.name for p in products.query.filter(price__gte=10, price__lte=30).all()}
        assert names == {"Red Kettle"}

    def test_or_and_negation(self, products):
        criteria = (Q(brand="Lumo") | Q(stock=0)) & ~Q(name="Blue Mug")
        names = {p.name for p in products.query.filter(criteria).all()}
        assert names == {"Desk Lamp"}

    def test_order_offset_limit_and_total(self, products):
        results = products.query.order_by("-price").offset(1).limit(1).all()

        assert [p.name for p in results.items] == ["Red Kettle"]
        assert results.total == 3

    def test_projection(self, products):
        brands = {record.brand for record in products.query.only("brand").all()}
        assert brands == {"Acme", "Lumo"}


class TestWrites:
    def test_stale_update_is_rejected(self, make_product):
        product = make_product(name="Kettle", stock=5)
        repo = current_domain.repository_for(Product)

        first = repo.get(product.id)
        second = repo.get(product.id)

        first.reserve_stock(1)
        repo.add(first)

        second.reserve_stock(2)
        with pytest.raises(ExpectedVersionError):
            repo.add(second)

        assert repo.get(product.id).stock == 4

    def test_duplicate_unique_field_is_a_validation_error(self):
        repo = current_domain.repository_for(User)
        repo.add(User.create(name="Jane Doe", email="jane@example.com"))

        with pytest.raises(ValidationError):
            repo.add(User.create(name="Jane Again", email="jane@example.com"))


class TestProviderExtensions:
    def test_next_sequence_increments(self, provider):
        assert provider.next_sequence("invoice") == 1
        assert provider.next_sequence("invoice") == 2
        assert provider.next_sequence("other") == 1

    def test_aggregate(self, provider, products):
        rows = provider.aggregate(
            "products",
            [{"$group": {"_id": "$brand", "stock": {"$sum": "$stock"}}}, {"$sort": {"_id": 1}}],
        )
        assert rows == [{"_id": "Acme", "stock": 3}, {"_id": "Lumo", "stock": 12}]

    def test_data_reset_keeps_indexes(self, provider, products):
        provider._data_reset()

        assert provider.database["products"].count_documents({}) == 0
        index_names = provider.database["users"].index_information()
        assert any(name.startswith("uq_") for name in index_names)
