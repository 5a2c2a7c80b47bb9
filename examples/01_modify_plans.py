"""
Example 01: Modify Plans

This example compiles the modify plans of an article editor and runs
insert, update and delete requests against a SQLite database.
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
)
import tempfile
import sqlite3
from pathlib import Path


def main():
    # Create a temporary database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE CONTENTSTATUS (
            CONTENTID INTEGER PRIMARY KEY,
            EDITREVISION INTEGER,
            LASTMODIFIER TEXT,
            LASTMODIFIEDDATE TEXT
        )
    """)
    conn.execute("CREATE TABLE ARTICLE (CONTENTID INTEGER, REVISIONID INTEGER, TITLE TEXT, BODY TEXT)")
    conn.execute("CREATE TABLE KEYWORDS (CONTENTID INTEGER, REVISIONID INTEGER, KEYWORD TEXT)")
    conn.commit()
    conn.close()

    # Describe the record: a parent with a body and a list of keywords
    keywords = FieldSet(
        name="keywords",
        type=FieldSetType.SIMPLE_CHILD,
        table="KEYWORDS",
        fields={"keyword": Field("keyword", "KEYWORD")},
    )
    article = FieldSet(
        name="article",
        type=FieldSetType.PARENT,
        table="ARTICLE",
        fields={
            "title": Field("title", "TITLE"),
            "body": Field("body", "BODY", binary=True),
            "keywords": keywords,
        },
    )
    mapper = DisplayMapper(
        id=1,
        field_set_ref="article",
        mappings=(
            DisplayMapping("title"),
            DisplayMapping("body"),
            DisplayMapping(
                "keywords",
                child_mapper=DisplayMapper(
                    id=2, field_set_ref="keywords", mappings=(DisplayMapping("keyword"),)
                ),
            ),
        ),
    )

    # Compile plans; datasets are registered in the dispatcher's registry
    dispatcher = Dispatcher.from_config(
        ConnectionConfig(driver="sqlite", database=db_path), DatasetRegistry()
    )
    handler = ModifyCommandHandler.create(mapper, article, dispatcher)
    handler.add_listener(lambda event: print(f"   -> {event.action.value} item {event.content_id}"))

    print("=== Modify Plans ===\n")
    print(f"Registered datasets: {', '.join(dispatcher.registry.names)}\n")

    # Example 1: Insert a new item
    print("1. Insert:")
    result = handler.process(
        {"DBActionType": "INSERT", "title": "Hello", "body": "<p>Hi</p>", "keyword": ["news", "tech"]},
        user="alice",
    )
    content_id = result.params["sys_contentid"]
    print(f"   Steps dispatched: {result.steps_executed}\n")

    # Example 2: Update title and keywords, leave the body alone
    print("2. Update:")
    result = handler.process(
        {
            "DBActionType": "UPDATE",
            "sys_contentid": content_id,
            "sys_revision": 1,
            "title": "Hello again",
            "keyword": ["news"],
        },
        user="bob",
    )
    print(f"   Binary fields modified: {sorted(result.event.binary_fields)}\n")

    # Example 3: Delete the item
    print("3. Delete:")
    handler.process({"DBActionType": "DELETE", "sys_contentid": content_id, "sys_revision": 1})

    dispatcher.connection_manager.close_pool()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
