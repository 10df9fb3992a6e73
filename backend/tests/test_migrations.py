from clerk_sync.db.migrations import get_head_revision, run_upgrade
from sqlalchemy import create_engine, inspect


def test_single_head():
    assert get_head_revision() == "0001_create_users"


def test_upgrade_creates_users_table(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrate.db'}")
    run_upgrade(engine)

    inspector = inspect(engine)
    assert "users" in inspector.get_table_names()
    columns = {c["name"] for c in inspector.get_columns("users")}
    assert {"external_id", "primary_email", "profile", "deleted_at"} <= columns
    indexes = {i["name"]: i for i in inspector.get_indexes("users")}
    assert indexes["ix_users_external_id"]["unique"]
    engine.dispose()
