"""Embedding page for the Gemini Tutor UI."""

from typing import Any, Dict, List, Tuple

import gradio as gr

from gemini_tutor.errors import TutorError
from gemini_tutor.llms.models import get_model_service
from gemini_tutor.ui.embedding import embed, summarize_vector


async def generate_embedding(text: str, preview: int = 64) -> Tuple[str, Dict[str, Any], List[float]]:
    """Generate an embedding for the given text.

    Args:
        text: The text to embed.
        preview: How many leading values to show in the summary.

    Returns:
        A tuple of (headline, summary, full_vector).
    """
    try:
        vector = await embed(get_model_service(), text)
    except TutorError as e:
        raise gr.Error(f"Failed to generate embedding: {str(e)}")

    summary = summarize_vector(vector, int(preview))
    headline = f"**{summary.dimensions} dimensions** for `{text}`"
    return headline, summary.model_dump(), vector


def create_embedding_page() -> gr.Blocks:
    """Create the embedding page.

    Returns:
        A Gradio Blocks component for the embedding page.
    """
    with gr.Blocks() as embedding_page:
        gr.Markdown("# Text to Vector")
        gr.Markdown('Convert text into numbers. Try "Apple" vs "Apple Pie" to see subtle differences.')

        with gr.Row():
            text = gr.Textbox(value="Nvidia Graphics Card", label="Text Input", scale=4)
            preview = gr.Number(value=64, label="Preview Values", precision=0, minimum=1, scale=1)
            generate_btn = gr.Button("Generate", variant="primary", scale=1)

        headline = gr.Markdown("")
        summary = gr.JSON(label="Summary")
        with gr.Accordion("Full Vector", open=False):
            vector = gr.JSON(label="Values")

        generate_btn.click(fn=generate_embedding, inputs=[text, preview], outputs=[headline, summary, vector])
        text.submit(fn=generate_embedding, inputs=[text, preview], outputs=[headline, summary, vector])

    return embedding_page
