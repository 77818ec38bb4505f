"""Helpers for HTML snippets passed to st.markdown."""
from textwrap import dedent


def html_block(template: str) -> str:
    """
    Flatten indented HTML before handing it to Streamlit.

    Lines indented by four or more spaces would otherwise render as a
    Markdown code block, so every line is dedented and left-stripped.
    """
    return "\n".join(line.lstrip() for line in dedent(template).splitlines()).strip()
