"""Terminal chat screen: bubble transcript, live preview and input loop."""

import logging
import threading
from typing import List, Optional

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from ..audio.audio_pub import Subscription
from ..conversation.controller import SessionController
from ..models.message import Message, ControllerState

logger = logging.getLogger(__name__)

BUBBLE_STYLE = "magenta"
BUBBLE_BORDER = "plum2"

PROMPT = "[bold]You:[/bold] "

HELP_TEXT = "Type a message and press Enter. /mic toggles the microphone, /clear clears, /quit exits."


def render_bubble(message: Message) -> Align:
    """Render one message as a bubble: the user's on the right, the bot's on the left."""
    panel = Panel(
        Text(message.text, style=BUBBLE_STYLE),
        title=Text(message.speaker.display_name, style="bold"),
        title_align="right" if message.is_user else "left",
        border_style=BUBBLE_BORDER,
        expand=False,
    )
    return Align.right(panel) if message.is_user else Align.left(panel)


class ChatScreen:
    """Read-only projection of a session controller onto the terminal."""

    def __init__(self, controller: SessionController, console: Optional[Console] = None):
        self.controller = controller
        self.console = console or Console()
        self.running = False
        self.waiting_for_input = False
        self._subscriptions: List[Subscription] = []
        self._draw_lock = threading.Lock()

    def render_header(self) -> Text:
        if self.controller.state is ControllerState.RECORDING:
            status_text, status_style = "🔴 LISTENING", "bold red"
        else:
            status_text, status_style = "⏹️  IDLE", "bold yellow"
        header = Text.assemble(("💬 DialogChat", "bold blue"), "  |  ", (status_text, status_style))
        if self.controller.status_message:
            header.append(f"  |  {self.controller.status_message}", style="dim")
        return header

    def render(self) -> Group:
        """Build the full screen, newest message first."""
        parts = [self.render_header(), Rule(style="bright_blue")]
        messages = self.controller.transcript.newest_first()
        if messages:
            parts.extend(render_bubble(message) for message in messages)
        else:
            parts.append(Text(HELP_TEXT, style="dim white italic"))
        preview = self.controller.pending_input
        if preview:
            parts.append(Text(f"… {preview}", style="italic cyan"))
        return Group(*parts)

    def refresh(self) -> None:
        """Redraw the screen, restoring the prompt if the input loop is blocked on it."""
        with self._draw_lock:
            self.console.clear()
            self.console.print(self.render())
            if self.waiting_for_input:
                self.console.print(PROMPT, end="")

    # pubsub listeners; argument names must match the topic's message data
    def _on_transcript(self, messages) -> None:
        self.refresh()

    def _on_preview(self, text) -> None:
        self.refresh()

    def _on_state(self, state) -> None:
        self.refresh()

    def _on_status(self, message) -> None:
        self.refresh()

    def attach(self) -> None:
        """Redraw on every controller change notification."""
        if self._subscriptions:
            return
        publisher = self.controller.publisher
        self._subscriptions = [
            Subscription(publisher.transcript_topic, self._on_transcript),
            Subscription(publisher.preview_topic, self._on_preview),
            Subscription(publisher.state_topic, self._on_state),
            Subscription(publisher.status_topic, self._on_status),
        ]

    def detach(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []

    def handle_line(self, line: str) -> bool:
        """Act on one line of input. Returns False when the user asked to quit."""
        command = line.strip().lower()
        if command in ("/quit", "/exit"):
            return False
        if command == "/mic":
            if self.controller.is_recording:
                self.controller.stop_recording()
            else:
                self.controller.start_recording()
        elif command == "/clear":
            self.controller.clear_transcript()
        elif line == "":
            # Enter on an empty prompt is not a send
            pass
        else:
            self.controller.submit_text(line)
        return True

    def run(self) -> None:
        """Interactive loop until /quit, EOF or Ctrl+C."""
        self.running = True
        self.attach()
        self.refresh()
        try:
            while self.running:
                self.waiting_for_input = True
                try:
                    line = self.console.input(PROMPT)
                except EOFError:
                    break
                finally:
                    self.waiting_for_input = False
                if not self.handle_line(line):
                    break
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self.running = False
            self.detach()
