"""
Scoped forms: edits stay in the browser until the form is submitted.

    formweave serve &
    formweave load examples/address_book.py
"""

from typing import Any

from formweave import App, StateStore, TreeBuilder

app = App("Address Book", layout="wide")


def save(state: StateStore, values: dict[str, Any]) -> None:
    state.setdefault("contacts", []).append(values)
    state["contact"] = {}


@app.view
def address_book(ui: TreeBuilder) -> None:
    ui.header("Address Book", level=1)

    with ui.card():
        with ui.form("contact", submit="Save contact", cancel="Reset", on_submit=save):
            ui.text_field("name", placeholder="Name")
            ui.text_field("city", placeholder="City")
            ui.radio_group("kind", ["Friend", "Work", "Family"], default="Friend")
            ui.checkbox("favorite", "Favorite")

    contacts = ui.state.get("contacts", [])
    with ui.collapsible(f"Saved contacts ({len(contacts)})", expanded=bool(contacts)):
        for contact in contacts:
            star = " ★" if contact.get("favorite") else ""
            ui.text(f"{contact['name']} ({contact['kind']}), {contact['city']}{star}")
        if not contacts:
            ui.markdown("*Nothing saved yet.*")


if __name__ == "__main__":
    app.run()
