"""
Example 02: Plans Run All-or-Nothing

A plan runs inside one transaction. A stale revision or a failing step
rolls back every step the plan already dispatched.
"""

from row_modify import (
    ConnectionConfig,
    Dispatcher,
    DatasetRegistry,
    DisplayMapper,
    DisplayMapping,
    Field,
    FieldSet,
    FieldSetType,
    ModifyCommandHandler,
    RevisionMismatchError,
)
import tempfile
import sqlite3
from pathlib import Path


def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute(
        "CREATE TABLE CONTENTSTATUS (CONTENTID INTEGER PRIMARY KEY, EDITREVISION INTEGER,"
        " LASTMODIFIER TEXT, LASTMODIFIEDDATE TEXT)"
    )
    conn.execute("CREATE TABLE PAGE (CONTENTID INTEGER, REVISIONID INTEGER, TITLE TEXT NOT NULL)")
    conn.commit()
    conn.close()

    page = FieldSet(
        name="page",
        type=FieldSetType.PARENT,
        table="PAGE",
        fields={"title": Field("title", "TITLE")},
    )
    mapper = DisplayMapper(id=10, field_set_ref="page", mappings=(DisplayMapping("title"),))

    dispatcher = Dispatcher.from_config(
        ConnectionConfig(driver="sqlite", database=db_path), DatasetRegistry()
    )
    handler = ModifyCommandHandler.create(mapper, page, dispatcher)

    print("=== Plan Transactions ===\n")

    result = handler.process({"DBActionType": "INSERT", "title": "Home"}, user="alice")
    content_id = result.params["sys_contentid"]

    # Example 1: Stale revision is rejected before anything is written
    print("1. Update with a stale revision:")
    try:
        handler.process(
            {"DBActionType": "UPDATE", "sys_contentid": content_id, "sys_revision": 3, "title": "X"}
        )
    except RevisionMismatchError as e:
        print(f"   Rejected: {e}\n")

    # Example 2: A failing step rolls back the system row update
    print("2. Update that violates a constraint:")
    try:
        handler.process({"DBActionType": "UPDATE", "sys_contentid": content_id, "sys_revision": 1}, user="bob")
    except Exception as e:
        print(f"   Error occurred: {type(e).__name__}")
        print("   Transaction was rolled back automatically\n")

    with dispatcher.connection_manager.get_connection() as conn:
        row = conn.execute("SELECT LASTMODIFIER FROM CONTENTSTATUS").fetchone()
        print(f"   Last modifier is still: {row[0]}")

    dispatcher.connection_manager.close_pool()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
