"""Console entry point for the Sei MCP gateway."""

from __future__ import annotations

import asyncio
import logging
import shlex
from typing import Optional

from .assistant import AssistantError, ChatAssistant
from .config import ClientConfig, ConfigError, load_config
from .formatting import describe_error, format_chain_info, format_networks
from .health import check_health, format_health
from .mcp.client import SeiMcpClient
from .mcp.errors import McpClientError

_LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PROMPT = "sei> "


class GatewayConsole:
    """Asynchronous REPL that answers chat questions through the gateway."""

    def __init__(self, *, client: SeiMcpClient, assistant: ChatAssistant) -> None:
        self._client = client
        self._assistant = assistant
        self._closing = False

    @property
    def closing(self) -> bool:
        return self._closing

    async def run(self) -> None:
        print("Sei MCP console ready. Type 'help' for a command list.\n")
        while not self._closing:
            try:
                line = await self._readline(PROMPT)
            except (EOFError, KeyboardInterrupt):
                print()
                break
            line = line.strip()
            if not line:
                continue
            print(await self.handle(line))

    async def handle(self, line: str) -> str:
        """Run one console line and return the text to show."""

        try:
            parts = shlex.split(line)
        except ValueError:
            parts = line.split()
        command = " ".join(part.lower() for part in parts)

        if command in {"quit", "exit"}:
            self._closing = True
            return "Bye."
        if command == "help":
            return _HELP_TEXT
        if command == "health":
            report = await check_health(self._client)
            return format_health(report)
        if command in {"networks", "chain"}:
            try:
                if command == "networks":
                    return format_networks(await self._client.get_supported_networks())
                return format_chain_info(await self._client.get_chain_info())
            except McpClientError as exc:
                _LOGGER.warning("Console command %s failed: %s", command, exc)
                return describe_error(exc)
        if command == "cache clear":
            cleared = len(self._client.cache)
            self._client.clear_cache()
            return f"Cleared {cleared} cached response(s)."
        return await self._assistant.answer(line)

    async def _readline(self, prompt: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _input_with_prompt, prompt)


_HELP_TEXT = (
    "Available commands:\n"
    "  help          Show this message\n"
    "  health        Probe the MCP server and show gateway status\n"
    "  networks      List networks served by the MCP server\n"
    "  chain         Show chain id and latest block\n"
    "  cache clear   Drop every cached response\n"
    "  quit          Exit the console\n"
    "Anything else is answered as a blockchain question, for example:\n"
    "  Check balance for wallet sei1...\n"
    "  Explain transaction 0x..."
)


def _input_with_prompt(prompt: str) -> str:
    return input(prompt)


def configure_logging(config: Optional[ClientConfig] = None) -> None:
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)
    root_logger.setLevel(config.log_level_value if config is not None else logging.INFO)
    logging.captureWarnings(True)


def build_assistant(client: SeiMcpClient, config: ClientConfig) -> ChatAssistant:
    try:
        return ChatAssistant(
            client,
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            retry_attempts=config.retry_attempts,
            retry_delay=config.retry_delay,
        )
    except AssistantError as exc:
        _LOGGER.warning("Gemini answers disabled: %s", exc)
        return ChatAssistant(
            client,
            retry_attempts=config.retry_attempts,
            retry_delay=config.retry_delay,
        )


async def run() -> None:
    configure_logging()
    try:
        config = load_config()
    except ConfigError as exc:
        _LOGGER.error("Configuration error: %s", exc)
        raise
    configure_logging(config)

    client = SeiMcpClient(config)
    assistant = build_assistant(client, config)
    _LOGGER.info(
        "Using MCP server %s (network=%s, chain=%s)",
        config.rpc_url,
        config.default_network,
        config.chain_id,
    )
    console = GatewayConsole(client=client, assistant=assistant)
    try:
        await console.run()
    finally:
        await client.close()


def main() -> None:  # pragma: no cover - console script
    asyncio.run(run())
