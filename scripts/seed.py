"""Seed script: creates demo notes and types into them via the REST API.

Usage:
    python scripts/seed.py              # uses http://localhost:8000
    python scripts/seed.py http://host  # custom base URL
"""

import sys

import httpx

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

NOTES = [
    {"title": "Reading list", "body": "Designing Data-Intensive Applications", "device": "laptop"},
    {"title": "Event sourcing", "body": "Replay the log from the last snapshot", "device": "laptop"},
    {"title": "Ideas", "body": "Snapshot every thousand events", "device": "phone"},
]


def create_note(client: httpx.Client, title: str) -> str:
    resp = client.post(f"{BASE_URL}/api/notes/", json={"title": title})
    resp.raise_for_status()
    note_id = resp.json()["id"]
    print(f"  Created note '{title}' ({note_id})")
    return note_id


def type_text(client: httpx.Client, note_id: str, text: str, device: str) -> None:
    for position, char in enumerate(text):
        resp = client.post(
            f"{BASE_URL}/api/notes/{note_id}/events",
            json={"operation": "keystroke", "char": char, "position": position, "device_id": device},
        )
        resp.raise_for_status()
    print(f"  Typed {len(text)} characters from {device}")


def main() -> None:
    print(f"Seeding against {BASE_URL}\n")

    with httpx.Client(timeout=10) as client:
        print("Notes:")
        for note in NOTES:
            note_id = create_note(client, note["title"])
            type_text(client, note_id, note["body"], note["device"])

        resp = client.get(f"{BASE_URL}/api/ledger/verify")
        resp.raise_for_status()
        print(f"\nLedger: {resp.json()}")

    print("\nDone!")


if __name__ == "__main__":
    main()
