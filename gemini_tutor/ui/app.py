"""Gradio UI for Gemini Tutor."""

import gradio as gr

from gemini_tutor.ui.components.chat_page import create_chat_page
from gemini_tutor.ui.components.embedding_page import create_embedding_page
from gemini_tutor.ui.components.function_page import create_function_page


def create_ui() -> gr.Blocks:
    """Create the UI.

    Returns:
        A Gradio Blocks component for the UI.
    """
    with gr.Blocks(title="Gemini Tutor") as app:
        gr.Markdown("# Gemini Tutor\nInteractive API Learning")
        with gr.Tabs():
            with gr.TabItem("Chat & Config", id=0):
                create_chat_page()

            with gr.TabItem("Function Calling", id=1):
                create_function_page()

            with gr.TabItem("Embeddings", id=2):
                create_embedding_page()

    return app


def main():
    """Run the UI."""
    app = create_ui()
    app.launch(inbrowser=True)


if __name__ == "__main__":
    main()
