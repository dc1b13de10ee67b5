"""NiceGUI chat page with streamed replies and document summaries."""

import os

from nicegui import events, ui

from chatrelay.conversation.session import Session, SessionController
from chatrelay.conversation.transcript import Transcript, TranscriptEntry
from chatrelay.models.schemas import ChatCompletionRequest, ChatMessage
from chatrelay.parsing.document_parser import (
    SUPPORTED_EXTENSIONS,
    DocumentParseError,
    parse_document,
)
from chatrelay.streaming.client import RelayClient

LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
SYSTEM_PROMPT = os.getenv(
    "SYSTEM_PROMPT",
    "You are a helpful assistant. Answer clearly and use markdown where it helps.",
)

CHAT_ERROR_MESSAGE = "An error occurred while generating the response."
SUMMARY_ERROR_MESSAGE = "An error occurred while summarizing the document."
DOCUMENT_NOTICE = "📄 Uploaded a document. Please summarize and organize the key points:\n\n"
SUMMARY_PROMPT = "Summarize the following document:\n\n"

CUSTOM_CSS = """
<style>
    body { background: #f5f5f5; }
    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }
    .header { background: #111827; }
    .message-user { background: #dcf8c6; border-radius: 18px 18px 4px 18px; }
    .message-assistant { background: #f1f0f0; border-radius: 18px 18px 18px 4px; }
    .typing-dot {
        width: 8px; height: 8px;
        background: #6b7280;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }
    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }
</style>
"""


def build_chat_request(context: list[ChatMessage], text: str) -> ChatCompletionRequest:
    """Request for a typed message: system prompt, prior turns, new message."""
    history = [m for m in context if m.content]
    return ChatCompletionRequest(
        model=LLM_MODEL,
        stream=True,
        messages=[
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            *history,
            ChatMessage(role="user", content=text),
        ],
    )


def build_summary_request(document_text: str) -> ChatCompletionRequest:
    """Request for a document summary; earlier turns are not sent."""
    return ChatCompletionRequest(
        model=LLM_MODEL,
        stream=True,
        messages=[ChatMessage(role="user", content=SUMMARY_PROMPT + document_text)],
    )


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    transcript = Transcript()
    bubbles: dict[str, ui.markdown] = {}

    messages_container: ui.column
    scroll: ui.scroll_area
    typing_row: ui.row
    input_field: ui.textarea
    stop_btn: ui.button
    upload: ui.upload

    def on_update(session: Session) -> None:
        entry = transcript.get(session.target_id)
        if entry is not None and entry.id in bubbles:
            bubbles[entry.id].set_content(entry.content)
        typing_row.set_visibility(controller.is_streaming)
        stop_btn.set_visibility(controller.is_streaming)
        scroll.scroll_to(percent=1.0)

    controller = SessionController(transcript, RelayClient(), on_update=on_update)

    def render_message(entry: TranscriptEntry) -> None:
        is_user = entry.role == "user"
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"

        with (
            ui.row().classes(f"w-full {align}"),
            ui.element("div").classes(f"max-w-[80%] px-4 py-3 {bubble}"),
        ):
            ui.label("Me" if is_user else "AI").classes("text-xs font-semibold")
            if is_user:
                ui.label(entry.content).classes("text-sm whitespace-pre-wrap break-words")
            else:
                bubbles[entry.id] = ui.markdown(entry.content, extras=["tables", "fenced-code-blocks"])

    def refresh_messages() -> None:
        bubbles.clear()
        messages_container.clear()
        with messages_container:
            if not transcript.entries:
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("forum").classes("text-5xl text-gray-300")
                    ui.label("Start a conversation or drop a document").classes(
                        "text-lg text-gray-400"
                    )
            for entry in transcript.entries:
                render_message(entry)
        scroll.scroll_to(percent=1.0)

    async def send_message() -> None:
        text = (input_field.value or "").strip()
        if not text:
            return
        input_field.value = ""

        controller.cancel()
        request = build_chat_request(transcript.context(complete_only=True), text)
        target_id = transcript.begin_exchange(text)
        refresh_messages()
        controller.start(request, target_id, error_message=CHAT_ERROR_MESSAGE)

    async def handle_upload(e: events.UploadEventArguments) -> None:
        try:
            document = parse_document(e.file.name, await e.file.read())
        except DocumentParseError as err:
            ui.notify(str(err), type="negative")
            return
        finally:
            upload.reset()

        target_id = transcript.begin_exchange(DOCUMENT_NOTICE + document.text)
        refresh_messages()
        controller.start(
            build_summary_request(document.text),
            target_id,
            error_message=SUMMARY_ERROR_MESSAGE,
        )

    def new_chat() -> None:
        controller.cancel()
        transcript.clear()
        refresh_messages()

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-3xl mx-auto app-container").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        # Header
        with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("smart_toy").classes("text-white text-3xl")
                ui.label("Chat Relay").classes("text-lg font-semibold text-white")
            ui.button(icon="add", on_click=new_chat).props("flat round color=white")

        # Messages
        with (
            ui.scroll_area().classes("flex-grow w-full bg-gray-50") as scroll,
            ui.column().classes("w-full p-5 gap-4"),
        ):
            messages_container = ui.column().classes("w-full gap-4")
            with ui.row().classes("items-center gap-2 px-2") as typing_row:
                with ui.row().classes("gap-1"):
                    for _ in range(3):
                        ui.element("div").classes("typing-dot")
                ui.label("AI is typing…").classes("text-sm text-gray-500 italic")
            typing_row.set_visibility(False)

        # Document intake (drag and drop or click)
        with ui.row().classes("w-full px-4 pt-3"):
            upload = (
                ui.upload(
                    label="Drop a document to summarize",
                    auto_upload=True,
                    on_upload=handle_upload,
                )
                .props(f'accept="{",".join(sorted(SUPPORTED_EXTENSIONS))}" flat bordered')
                .classes("w-full")
            )

        # Input
        with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
            input_field = (
                ui.textarea(placeholder="Type a message...")
                .props("autogrow outlined dense rows=1")
                .classes("flex-grow")
                .on("keydown.enter.exact.prevent", send_message)
            )
            stop_btn = ui.button(icon="stop", on_click=controller.cancel).props(
                "round flat color=negative"
            )
            stop_btn.set_visibility(False)
            ui.button(icon="send", on_click=send_message).props("round unelevated")

        refresh_messages()


def main() -> None:
    ui.run(title="Chat Relay", port=int(os.getenv("UI_PORT", "8080")), reload=False)


if __name__ == "__main__":
    main()
