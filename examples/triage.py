"""
Candidate triage: tag buttons, columns and feedback components.

    formweave run examples/triage.py
"""

from formweave import App, TreeBuilder

app = App("Triage", layout="wide")

CANDIDATES = [
    ("Ada", "https://example.org/ada"),
    ("Grace", "https://example.org/grace"),
    ("Linus", "https://example.org/linus"),
]

BADGES = {"strong_fit": "strong", "maybe": "maybe", "pass": "skip"}


@app.view
def triage(ui: TreeBuilder) -> None:
    ui.header("Triage", level=1)
    decided = 0

    for index, (name, profile) in enumerate(CANDIDATES, start=1):
        key = f"verdict_{index}"
        with ui.card():
            with ui.columns(widths=["40%", "60%"]):
                with ui.column():
                    ui.header(name, level=3)
                    ui.external_link_button("Profile", profile)
                with ui.column():
                    ui.tag_buttons(key, ["Strong fit", "Maybe", "Pass"])
                    verdict = ui.state[key]
                    if verdict:
                        decided += 1
                        ui.status_badge(BADGES[verdict], ui.state.get(f"note_{index}", ""))
                        ui.text_field(f"note_{index}", placeholder="Why?")

    ui.progress_bar(decided, max_value=len(CANDIDATES), variant="success")
    if decided == len(CANDIDATES):
        with ui.alert("success", title="All done", dismissible=True):
            ui.text("Every candidate has a verdict.")


if __name__ == "__main__":
    app.run()
