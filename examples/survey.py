"""
One-shot survey: blocks until the form is submitted, then prints the answers.

    python examples/survey.py
    formweave once examples/survey.py --output file --output-file answers.json
"""

import json

from formweave import App, TreeBuilder

app = App("User Survey")


@app.view
def survey(ui: TreeBuilder) -> None:
    ui.markdown(
        "## User Information Survey\n"
        "When you click **Submit**, the answers go back to the calling process."
    )
    ui.text_field("name", placeholder="Enter your full name")
    ui.text_field("email", placeholder="Enter your email address")
    ui.select("priority", ["Low", "Medium", "High", "Critical"], default="Medium")
    ui.checkbox_group(
        "topics",
        ["Billing", "Support", "Features"],
        select_all="All",
        select_none="None",
    )
    ui.checkbox("agree", "I agree to the terms and conditions")
    if ui.state["agree"]:
        ui.text_area("comments", placeholder="Anything else?")


if __name__ == "__main__":
    result = app.run_once(timeout=600)
    print(json.dumps(result, indent=2))
