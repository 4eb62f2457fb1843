import uuid
from datetime import datetime, timedelta, timezone

import pytest

from hrm_console.core.errors import DataConflict, DataServiceError
from hrm_console.models.enums import ProductStatus, Role
from hrm_console.schemas import PermissionRights, ProductCreate, ProductUpdate
from hrm_console.services.data_service import PRODUCTS, PROFILES, USER_PERMISSIONS
from hrm_console.services.product_catalog import ProductCatalogManager
from hrm_console.services.sql_data_service import SqlDataService
from hrm_console.services.user_directory import UserDirectoryManager

pytestmark = pytest.mark.unit

T0 = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(db):
    return SqlDataService(db)


def _profile_row(email, role="user", minutes=0):
    return {
        "id": str(uuid.uuid4()),
        "email": email,
        "role": role,
        "status": "active",
        "created_at": T0 + timedelta(minutes=minutes),
        "updated_at": T0 + timedelta(minutes=minutes),
    }


def test_insert_returns_row_with_string_id(store):
    row = store.insert(PROFILES, _profile_row("a@example.com"))

    assert isinstance(row["id"], str)
    assert row["email"] == "a@example.com"
    assert row["created_at"] == T0
    assert row["created_at"].tzinfo is not None


def test_select_filters_and_orders(store):
    store.insert(PROFILES, _profile_row("a@example.com", minutes=1))
    store.insert(PROFILES, _profile_row("b@example.com", role="admin", minutes=2))
    store.insert(PROFILES, _profile_row("c@example.com", role="admin", minutes=3))

    newest_first = store.select(PROFILES, order_by="created_at", descending=True)
    assert [r["email"] for r in newest_first] == ["c@example.com", "b@example.com", "a@example.com"]

    admins = store.select(PROFILES, {"role": Role.admin}, order_by="created_at")
    assert [r["email"] for r in admins] == ["b@example.com", "c@example.com"]


def test_get_and_update(store):
    row = store.insert(PROFILES, _profile_row("a@example.com"))

    updated = store.update(PROFILES, {"full_name": "Alice"}, row["id"])
    assert updated["full_name"] == "Alice"
    assert store.get(PROFILES, row["id"])["full_name"] == "Alice"
    assert store.update(PROFILES, {"full_name": "Nobody"}, str(uuid.uuid4())) is None


def test_delete(store):
    row = store.insert(PROFILES, _profile_row("a@example.com"))
    store.delete(PROFILES, row["id"])
    assert store.get(PROFILES, row["id"]) is None


def test_duplicate_email_is_a_conflict_and_session_stays_usable(store):
    store.insert(PROFILES, _profile_row("a@example.com"))

    with pytest.raises(DataConflict):
        store.insert(PROFILES, _profile_row("a@example.com"))

    assert len(store.select(PROFILES)) == 1


def test_unknown_table_or_column(store):
    with pytest.raises(DataServiceError, match="Unknown table"):
        store.select("payroll")
    with pytest.raises(DataServiceError, match="Unknown column"):
        store.select(PROFILES, {"salary": 1})


def test_upsert_inserts_then_updates_same_row(store):
    admin = store.insert(PROFILES, _profile_row("root@example.com", role="super_admin"))
    target = store.insert(PROFILES, _profile_row("a@example.com", minutes=1))
    key = {"super_admin_id": admin["id"], "target_user_id": target["id"]}

    first = store.upsert(USER_PERMISSIONS, {**key, "is_hidden": True, "updated_at": T0}, on_conflict=tuple(key))
    second = store.upsert(
        USER_PERMISSIONS,
        {**key, "is_hidden": False, "can_delete": False, "updated_at": T0 + timedelta(seconds=5)},
        on_conflict=tuple(key),
    )

    assert first["id"] == second["id"]
    assert second["is_hidden"] is False
    assert second["can_delete"] is False
    assert second["created_at"] == first["created_at"]
    assert second["updated_at"] == T0 + timedelta(seconds=5)
    assert len(store.select(USER_PERMISSIONS)) == 1


def test_upsert_needs_key_values(store):
    with pytest.raises(DataServiceError, match="needs values for target_user_id"):
        store.upsert(USER_PERMISSIONS, {"super_admin_id": str(uuid.uuid4())}, on_conflict=("super_admin_id", "target_user_id"))


def test_deleting_profile_cascades_overlays(store):
    admin = store.insert(PROFILES, _profile_row("root@example.com", role="super_admin"))
    target = store.insert(PROFILES, _profile_row("a@example.com", minutes=1))
    store.upsert(
        USER_PERMISSIONS,
        {"super_admin_id": admin["id"], "target_user_id": target["id"], "is_hidden": True},
        on_conflict=("super_admin_id", "target_user_id"),
    )

    store.delete(PROFILES, target["id"])
    assert store.select(USER_PERMISSIONS) == []


def test_catalog_activation_stamps_survive_the_database(store, make_profile):
    admin = make_profile(role=Role.admin, store=store)
    catalog = ProductCatalogManager(store, clock=lambda: T0)

    product = catalog.create(
        admin, ProductCreate(product_code="A0001", description="Widget", unit="EA", status=ProductStatus.inactive)
    )
    assert product.activated_at is None

    catalog = ProductCatalogManager(store, clock=lambda: T0 + timedelta(hours=1))
    activated = catalog.update(admin, product.id, ProductUpdate(status=ProductStatus.active))

    assert activated.activated_at == T0 + timedelta(hours=1)
    assert activated.activated_by == admin.id
    assert activated.created_at == T0
    assert store.get(PRODUCTS, product.id)["status"] == "active"


def test_directory_overlay_toggle_on_sql(store, make_profile):
    root = make_profile(role=Role.super_admin, store=store)
    member = make_profile(store=store)
    directory = UserDirectoryManager(store)

    directory.update_rights(root, member, PermissionRights(can_delete=False))
    hidden = directory.toggle_hidden(root, directory.get(root, member.id))

    assert hidden.is_hidden is True
    assert hidden.can_delete is False
    assert directory.list_visible(root) == [directory.get(root, root.id)]


def test_malformed_id_matches_nothing(store):
    store.insert(PROFILES, _profile_row("a@example.com"))

    assert store.get(PROFILES, "not-a-uuid") is None
    assert store.select(USER_PERMISSIONS, {"target_user_id": "not-a-uuid"}) == []
    assert store.update(PROFILES, {"full_name": "Nobody"}, "not-a-uuid") is None
    store.delete(PROFILES, "not-a-uuid")
    assert len(store.select(PROFILES)) == 1


def test_database_error_message_hides_the_statement(store):
    row = {**_profile_row("a@example.com"), "id": "not-a-uuid"}

    with pytest.raises(DataServiceError) as exc_info:
        store.insert(PROFILES, row)

    assert "badly formed" in exc_info.value.message
    assert "INSERT" not in exc_info.value.message
    assert store.select(PROFILES) == []
