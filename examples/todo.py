"""
Todo list: handlers mutate state, the next build shows the result.

    formweave run examples/todo.py
"""

from formweave import App, StateStore, TreeBuilder

app = App("Todo Manager")


@app.view
def todos(ui: TreeBuilder) -> None:
    ui.header("Todo List", level=1)
    ui.text_field("new_todo", placeholder="Enter a new todo")

    def add(state: StateStore) -> None:
        text = state["new_todo"].strip()
        if text:
            state.setdefault("todos", []).append(text)
            state["new_todo"] = ""

    ui.button("Add Todo", on_click=add)

    items = ui.state.setdefault("todos", [])
    if not items:
        ui.text("No todos yet. Add one above!")
        return

    ui.header(f"Your Todos ({len(items)})", level=3)
    for index, item in enumerate(items):
        with ui.div(css_class="todo-item"):
            ui.text(item)

            def done(state: StateStore, index: int = index) -> None:
                del state["todos"][index]

            ui.button("Done", on_click=done, style="secondary")


if __name__ == "__main__":
    app.run()
