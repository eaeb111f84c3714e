#!/usr/bin/env python3
"""
Person Repository Example

Demonstrates PersonRepository on a MongoConnection: connection events, validation, the
read-modify-write and atomic appends, and the projected query.

Prerequisites:
- MongoDB running on localhost:27017 (or MONGO_URI set)
"""

import asyncio
import os

from peopledb.database import MongoConnection, PersonRepository, ValidationError, validate_draft


# ============================================================================
# Example Functions
# ============================================================================

async def demonstrate_validation():
    """Validation runs before any store call."""
    print("\n" + "=" * 70)
    print("VALIDATION")
    print("=" * 70)

    result = validate_draft({"age": 3, "favoriteFoods": ["pizza"]})
    print(f"✓ Draft without a name accepted: {result.ok}, offending fields: {result.error.fields}")

    result = validate_draft({"name": "John Doe", "age": 25})
    print(f"✓ Draft with a name accepted: {result.ok}")


async def demonstrate_repository(people: PersonRepository):
    print("\n" + "=" * 70)
    print("PERSON REPOSITORY")
    print("=" * 70)

    # CREATE
    print("\n--- CREATE Operations ---")

    john = await people.insert_one({"name": "John Doe", "age": 25, "favoriteFoods": ["pizza", "pasta"]})
    print(f"✓ Created person: {john.name} (ID: {john.id})")

    created = await people.insert_many(
        [
            {"name": "Alice", "age": 30, "favoriteFoods": ["pizza", "burrito"]},
            {"name": "Bob", "age": 25, "favoriteFoods": ["hamburger", "burrito"]},
        ]
    )
    print(f"✓ Created {len(created)} people")

    try:
        await people.insert_many([{"name": "Mary"}, {"name": ""}])
    except ValidationError as e:
        print(f"✓ Batch rejected, nothing written: {e}")

    # UPDATE
    print("\n--- UPDATE Operations ---")

    alice = await people.append_favorite_food_atomic(created[0].id, "tacos")
    print(f"✓ Alice's favorites: {', '.join(alice.favorite_foods)}")

    bob = await people.update_age_by_name("Bob", 26)
    print(f"✓ Bob's age: {bob.age}")

    # QUERY
    print("\n--- QUERY Operations ---")

    for person in await people.query_favorite_food("burrito", limit=2, exclude_field="age"):
        print(f"  - {person.as_stored()}")

    # DELETE
    print("\n--- DELETE Operations ---")

    removed = await people.remove_by_id(john.id)
    print(f"✓ Removed: {removed.name}")
    count = await people.remove_all_by_name("Alice") + await people.remove_all_by_name("Bob")
    print(f"✓ Removed {count} more")


async def main():
    """Run the person repository demonstrations."""
    await demonstrate_validation()

    connection = MongoConnection(os.environ.get("MONGO_URI", "mongodb://localhost:27017"), "sampleapp")
    connection.on("connected", lambda uri, db_name: print(f"✓ Connected to {uri} ({db_name})"))
    connection.on("error", lambda error: print(f"✗ MongoDB connection error: {error}"))

    async with connection:
        if connection.is_connected:
            await demonstrate_repository(PersonRepository.from_connection(connection))


if __name__ == "__main__":
    asyncio.run(main())
