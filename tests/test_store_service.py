import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.dialects import postgresql

from storefinder.models.store import store_search_document
from storefinder.schemas.store import StoreForm
from storefinder.services.store_service import (
    StoreService,
    StoreNotFoundError,
    StoreOwnershipError,
    confirm_owner,
    paginate,
    slugify,
)


class FakeHeartRepo:
    """In-memory stand-in for the heart queries of UserRepository."""

    def __init__(self, hearts=None):
        self.hearts = set(hearts or ())

    async def get_heart_ids(self, user_id):
        return set(self.hearts)

    async def toggle_heart(self, user_id, store_id):
        if store_id in self.hearts:
            self.hearts.discard(store_id)
        else:
            self.hearts.add(store_id)
        return set(self.hearts)


@pytest.fixture
def service(mock_db_session):
    service = StoreService(mock_db_session)
    service.store_repo = AsyncMock()
    service.user_repo = AsyncMock()
    return service


def store_form(**overrides):
    data = {
        "name": "Coffee Corner",
        "description": "Espresso and cake",
        "tags": ["Wifi"],
        "address": "1 Main St",
        "lng": -79.8,
        "lat": 43.2,
    }
    data.update(overrides)
    return StoreForm.model_validate(data)


class TestPaginate:

    def test_first_page(self):
        assert paginate(1, 10) == (0, 3)

    def test_last_page(self):
        assert paginate(3, 10) == (8, 3)

    def test_exact_multiple(self):
        assert paginate(2, 8) == (4, 2)

    def test_no_stores(self):
        assert paginate(1, 0) == (0, 0)


class TestSlugify:

    def test_simple(self):
        assert slugify("Coffee Corner") == "coffee-corner"

    def test_accents_and_symbols(self):
        assert slugify("Café Olé & Co!") == "cafe-ole-and-co"

    def test_only_symbols(self):
        assert slugify("!!!") == "store"


class TestConfirmOwner:

    def test_author_passes(self, make_user, make_store):
        author = make_user()
        confirm_owner(make_store(author=author), author)

    def test_other_user_rejected(self, make_user, make_store):
        with pytest.raises(StoreOwnershipError):
            confirm_owner(make_store(), make_user())


@pytest.mark.asyncio
class TestGetStoresPage:

    async def test_past_the_end(self, service):
        service.store_repo.count.return_value = 10
        service.store_repo.get_page.return_value = []

        page = await service.get_stores_page(5)

        assert page.is_past_end
        assert page.pages == 3
        service.store_repo.get_page.assert_awaited_once_with(skip=16, limit=4)

    async def test_first_page_of_empty_site_is_not_past_end(self, service):
        service.store_repo.count.return_value = 0
        service.store_repo.get_page.return_value = []

        page = await service.get_stores_page(1)

        assert not page.is_past_end


@pytest.mark.asyncio
class TestCreateStore:

    async def test_unique_slug_kept(self, service, make_user, make_store):
        author = make_user()
        service.store_repo.get_slug_family.return_value = set()
        service.store_repo.create.return_value = make_store(author=author)

        await service.create_store(store_form(), author)

        kwargs = service.store_repo.create.await_args.kwargs
        assert kwargs["slug"] == "coffee-corner"
        assert kwargs["author_id"] == author.id

    async def test_taken_slug_gets_suffix(self, service, make_user, make_store):
        service.store_repo.get_slug_family.return_value = {"coffee-corner", "coffee-corner-2"}
        service.store_repo.create.return_value = make_store()

        await service.create_store(store_form(), make_user())

        assert service.store_repo.create.await_args.kwargs["slug"] == "coffee-corner-3"

    async def test_suffix_skips_numbers_in_use(self, service, make_user, make_store):
        service.store_repo.get_slug_family.return_value = {"coffee-corner", "coffee-corner-5"}
        service.store_repo.create.return_value = make_store()

        await service.create_store(store_form(), make_user())

        assert service.store_repo.create.await_args.kwargs["slug"] == "coffee-corner-6"

    async def test_numbered_name_does_not_block_plain_slug(self, service, make_user, make_store):
        # "Coffee 2" already owns coffee-2; "Coffee" must not collide with it
        service.store_repo.get_slug_family.return_value = {"coffee-2"}
        service.store_repo.create.return_value = make_store()

        await service.create_store(store_form(name="Coffee"), make_user())

        slug = service.store_repo.create.await_args.kwargs["slug"]
        assert slug == "coffee"

    async def test_plain_and_numbered_taken(self, service, make_user, make_store):
        service.store_repo.get_slug_family.return_value = {"coffee", "coffee-2"}
        service.store_repo.create.return_value = make_store()

        await service.create_store(store_form(name="Coffee"), make_user())

        assert service.store_repo.create.await_args.kwargs["slug"] == "coffee-3"


@pytest.mark.asyncio
class TestUpdateStore:

    async def test_non_author_rejected(self, service, make_user, make_store):
        service.store_repo.get_by_id.return_value = make_store()

        with pytest.raises(StoreOwnershipError):
            await service.update_store(uuid.uuid4(), store_form(), make_user())

        service.store_repo.update.assert_not_awaited()

    async def test_missing_store(self, service, make_user):
        service.store_repo.get_by_id.return_value = None

        with pytest.raises(StoreNotFoundError):
            await service.update_store(uuid.uuid4(), store_form(), make_user())

    async def test_keeps_photo_and_slug(self, service, make_user, make_store):
        author = make_user()
        store = make_store(author=author, photo="old.png")
        service.store_repo.get_by_id.return_value = store
        service.store_repo.update.return_value = store

        await service.update_store(store.id, store_form(description="New"), author)

        kwargs = service.store_repo.update.await_args.kwargs
        assert "photo" not in kwargs
        assert "slug" not in kwargs
        assert kwargs["description"] == "New"

    async def test_rename_regenerates_slug(self, service, make_user, make_store):
        author = make_user()
        store = make_store(author=author)
        service.store_repo.get_by_id.return_value = store
        service.store_repo.get_slug_family.return_value = set()
        service.store_repo.update.return_value = store

        await service.update_store(store.id, store_form(name="Tea Time", photo="new.png"), author)

        kwargs = service.store_repo.update.await_args.kwargs
        assert kwargs["slug"] == "tea-time"
        assert kwargs["photo"] == "new.png"
        service.store_repo.get_slug_family.assert_awaited_once_with("tea-time", exclude_id=store.id)

    async def test_rename_onto_taken_slug_gets_free_suffix(self, service, make_user, make_store):
        author = make_user()
        store = make_store(author=author)
        service.store_repo.get_by_id.return_value = store
        service.store_repo.get_slug_family.return_value = {"tea-time", "tea-time-2"}
        service.store_repo.update.return_value = store

        await service.update_store(store.id, store_form(name="Tea Time"), author)

        assert service.store_repo.update.await_args.kwargs["slug"] == "tea-time-3"


@pytest.mark.asyncio
class TestHearts:

    async def test_double_toggle_restores_hearts(self, service, make_user, make_store):
        user = make_user()
        store = make_store()
        other = uuid.uuid4()
        service.store_repo.get_by_id.return_value = store
        service.user_repo = FakeHeartRepo({other})

        first = await service.toggle_heart(user, store.id)
        second = await service.toggle_heart(user, store.id)

        assert set(first.hearts) == {other, store.id}
        assert set(second.hearts) == {other}

    async def test_unknown_store(self, service, make_user):
        service.store_repo.get_by_id.return_value = None

        with pytest.raises(StoreNotFoundError):
            await service.toggle_heart(make_user(), uuid.uuid4())


@pytest.mark.asyncio
class TestSearch:

    async def test_blank_query_matches_nothing(self, service):
        assert await service.search_stores("   ") == []
        service.store_repo.search.assert_not_awaited()

    async def test_results_keep_score_order(self, service, make_store):
        a = make_store(name="Beer Hall", slug="beer-hall")
        b = make_store(name="Beer Garden", slug="beer-garden")
        service.store_repo.search.return_value = [(a, 0.9), (b, 0.4)]

        results = await service.search_stores("beer")

        assert [r.slug for r in results] == ["beer-hall", "beer-garden"]
        service.store_repo.search.assert_awaited_once_with("beer", limit=5)

    async def test_map_stores_projection(self, service):
        store_id = uuid.uuid4()
        service.store_repo.near.return_value = [{
            "id": store_id,
            "slug": "coffee-corner",
            "name": "Coffee Corner",
            "description": None,
            "address": "1 Main St",
            "lng": -79.8,
            "lat": 43.2,
            "photo": None,
            "distance": 120.0,
        }]

        pins = await service.map_stores(lng=-79.8, lat=43.2)

        assert pins[0].location.coordinates == [-79.8, 43.2]
        service.store_repo.near.assert_awaited_once_with(
            lng=-79.8, lat=43.2, max_distance=10_000, limit=10
        )


class TestSearchDocument:

    def test_compiles_to_indexed_expression(self):
        sql = str(store_search_document().compile(dialect=postgresql.dialect()))

        assert sql.startswith("to_tsvector('english'::regconfig, ")
        assert "coalesce(stores.name, '')" in sql
        assert "' '" in sql
        assert "coalesce(stores.description, '')" in sql
        # Bound parameters would keep Postgres from matching the index
        assert "%(" not in sql
