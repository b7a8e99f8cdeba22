#!/usr/bin/env python3
"""Interactive chat CLI for the tool-calling agent."""

import argparse
import asyncio
from collections.abc import Sequence

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from toolrunner.clients.anthropic import AnthropicClient, AnthropicConfig
from toolrunner.exceptions import ToolRunnerError
from toolrunner.models.messages import (
    AssistantMessage,
    Message,
    SystemMessage,
    ToolRequestMessage,
    ToolResponseMessage,
    UserMessage,
)
from toolrunner.services.agent import Agent, AgentConfig, TranscriptSink
from toolrunner.tools import default_tools
from toolrunner.utils.logging import LogConfig, setup_logging

DEFAULT_SYSTEM_PROMPT = "If required parameters are missing, ask the user before calling a tool."

_ROLE_STYLES = {
    SystemMessage: "dim",
    UserMessage: "cyan",
    AssistantMessage: "white",
    ToolRequestMessage: "green",
    ToolResponseMessage: "blue",
}


def make_transcript_printer(console: Console) -> TranscriptSink:
    """Transcript sink printing each message in its role's color."""

    def print_transcript(messages: Sequence[Message]) -> None:
        console.rule("[yellow]Transcript[/yellow]")
        for message in messages:
            style = _ROLE_STYLES.get(type(message), "white")
            console.print(Text(message.type, style="yellow"), Text(str(message).split(": ", 1)[-1], style=style))
        console.rule()

    return print_transcript


class ChatCLI:
    """Interactive chat interface around an :class:`Agent`."""

    def __init__(self, agent: Agent, console: Console, system_prompt_appends: Sequence[str] = ()):
        self.agent = agent
        self.console = console
        self.system_prompt_appends = list(system_prompt_appends)
        self.runner = asyncio.Runner()

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]Tool-calling Agent - Interactive Chat[/bold blue]\n"
                f"Tools: {', '.join(self.agent.tools_registry.get_tool_names())}\n"
                "Commands: /help, /quit",
                border_style="blue",
            )
        )

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")

                if user_input.lower() in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif user_input.lower() == "/help":
                    self._show_help()
                    continue
                elif user_input.strip() == "":
                    continue

                self._send_message(user_input)

        except (KeyboardInterrupt, EOFError):
            pass
        finally:
            self.runner.close()
            self.console.print("\n[yellow]Goodbye![/yellow]")

    def _send_message(self, message: str) -> None:
        try:
            with self.console.status("Thinking..."):
                answer = self.runner.run(
                    self.agent.send_message(message, system_prompt_appends=self.system_prompt_appends)
                )
        except ToolRunnerError as e:
            self.console.print(f"[red]Agent error: {e}[/red]")
            return

        self.console.print(
            Panel(
                Markdown(answer),
                title="[bold green]Assistant[/bold green]",
                border_style="green",
                padding=(1, 2),
            )
        )

    def _show_help(self) -> None:
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /quit or /exit - Exit the chat

[bold]Try:[/bold]
• "Generate two random numbers from 10 to 20 and add them together"
• "What time is it?"
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main() -> None:
    """Main entry point for the chat CLI."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--model", default=AnthropicConfig.model, help="Anthropic model name")
    parser.add_argument("--system-prompt", default=DEFAULT_SYSTEM_PROMPT)
    parser.add_argument("--append", action="append", default=[], help="Extra system prompt fragment per message")
    parser.add_argument("--max-rounds", type=int, default=AgentConfig.max_rounds)
    parser.add_argument("--debug", action="store_true", help="Print the transcript after every message")
    args = parser.parse_args()

    setup_logging(LogConfig(level="DEBUG" if args.debug else "WARNING"))

    console = Console()
    agent = Agent(
        AnthropicClient(config=AnthropicConfig(model=args.model)),
        tools=default_tools(),
        system_prompt=args.system_prompt,
        config=AgentConfig(max_rounds=args.max_rounds),
        transcript_sink=make_transcript_printer(console) if args.debug else None,
    )
    ChatCLI(agent, console, system_prompt_appends=args.append).start()


if __name__ == "__main__":
    main()
