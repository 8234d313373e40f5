"""Main application entry point for DialogChat."""

import sys
import time
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

from . import __version__
from .audio import AudioCapture, AudioPublisher
from .config import DialogChatConfig
from .conversation import SessionController, ConversationPublisher
from .intent import DialogflowBackend
from .ui import ChatScreen, render_bubble

logger = logging.getLogger(__name__)


class App:
    """Wires configuration, audio capture, backend and controller together."""

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        self.config = DialogChatConfig(config_path)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.console = Console()
        self.backend: Optional[DialogflowBackend] = None
        self.audio_capture: Optional[AudioCapture] = None
        self.controller: Optional[SessionController] = None

    def init(self) -> None:
        logger.info("Initializing services...")

        sample_rate = self.config.get('audio.sample_rate', 16000)
        chunk_size = self.config.get('audio.chunk_size', 1024)
        channels = self.config.get('audio.channels', 1)
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk, {channels} channels")

        self.backend = DialogflowBackend(
            credentials_path=self.config.get_credentials_path(),
            project_id=self.config.get('dialogflow.project_id'),
            request_timeout=float(self.config.get('dialogflow.request_timeout', 10)),
            stream_timeout=float(self.config.get('dialogflow.stream_timeout', 300)),
        )
        self.backend.initialize()

        self.audio_capture = AudioCapture(
            publisher=AudioPublisher("audio"),
            sample_rate=sample_rate,
            chunk_size=chunk_size,
            channels=channels,
        )
        self.controller = SessionController(
            backend=self.backend,
            audio_source=self.audio_capture,
            streaming_config=self.config.get_streaming_config(),
            publisher=ConversationPublisher("chat"),
        )

    def run_interactive(self) -> None:
        ChatScreen(self.controller, self.console).run()

    def run_text(self, text: str) -> None:
        """Send one message and print the exchange."""
        future = self.controller.submit_text(text)
        future.result(timeout=float(self.config.get('dialogflow.request_timeout', 10)) + 5)
        self.print_transcript()

    def run_auto(self, duration: int) -> None:
        """Listen for a fixed time, then print what was said."""
        if not self.controller.start_recording():
            raise RuntimeError(self.controller.status_message or "Could not start recording")
        self.console.print(f"🎙️  Listening for {duration}s...")
        time.sleep(duration)
        if self.controller.is_recording:
            self.controller.stop_recording()
        self.print_transcript()

    def print_transcript(self) -> None:
        for message in self.controller.transcript.newest_first():
            self.console.print(render_bubble(message))
        if self.controller.status_message:
            self.console.print(Text(self.controller.status_message, style="dim"))

    def cleanup(self) -> None:
        if self.controller:
            self.controller.close()
        if self.audio_capture:
            self.audio_capture.cleanup()
        if self.backend:
            self.backend.cleanup()


def setup_logging(config: DialogChatConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/dialogchat.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("DialogChat starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="DialogChat - voice and text chat with a Dialogflow agent",
        epilog="Interactive commands: /mic=toggle microphone, /clear=clear transcript, /quit=exit"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: dialogchat.yaml)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--text",
        type=str,
        help="Send a single text message, print the reply and exit"
    )
    mode.add_argument(
        "--auto",
        action="store_true",
        help="Listen on the microphone for --duration seconds, print the conversation and exit"
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=10,
        help="Duration in seconds for auto mode (default: 10)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"DialogChat v{__version__}"
    )
    return parser


def main() -> None:
    """Main entry point for DialogChat."""
    args = build_parser().parse_args()

    try:
        app = App(args.config, args.log_level)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    try:
        app.init()
        if args.text is not None:
            app.run_text(args.text)
        elif args.auto:
            app.run_auto(args.duration)
        else:
            app.run_interactive()
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except Exception as e:
        print(f"❌ Error: {e}")
        logger.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        app.cleanup()


if __name__ == "__main__":
    main()
