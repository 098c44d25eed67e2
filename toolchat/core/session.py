"""
Conversation session: the turn-taking state machine.

States:
    INIT -> AWAITING_INPUT -> AWAITING_MODEL -> AWAITING_INPUT          (direct answer)
                                             -> EXECUTING_TOOL
                                             -> AWAITING_FOLLOWUP -> AWAITING_INPUT
    any suspension point --interrupt/exit/EOF--> TERMINATING

Each state handler performs at most one external call and returns a Step
(next state + transcript delta + what to show the user). Only _apply()
touches the transcript, so the transcript is append-only and every
accepted user turn produces exactly one reply (or one error line).
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from ..errors import ProviderError
from .cancellation import CancellationToken, SessionCancelled, interrupt_handler, run_in_daemon_thread
from .detection import detect_tool_call
from .models import Message, ToolCallRequest
from .prompts import build_system_prompt
from .registry import ToolConnection, ToolRegistry
from .tool_executor import ToolEvent, ToolExecutor

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit")


class SessionState(Enum):
    INIT = "init"
    AWAITING_INPUT = "awaiting_input"
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOL = "executing_tool"
    AWAITING_FOLLOWUP = "awaiting_followup"
    TERMINATING = "terminating"
    CLOSED = "closed"


@dataclass(frozen=True)
class PendingToolCall:
    """Carried from AWAITING_MODEL into EXECUTING_TOOL; nothing appended yet."""
    assistant_text: str
    request: ToolCallRequest


@dataclass(frozen=True)
class Step:
    """Result of one state handler."""
    next_state: SessionState
    messages: Tuple[Message, ...] = ()
    reply: Optional[str] = None
    error: Optional[str] = None
    pending: Optional[PendingToolCall] = None


class ChatSession:
    """Orchestrates the interaction between user, model and tool servers.

    Args:
        connections: server name -> connection, in configuration order
        provider: anything with generate_response(messages) -> str
            (sync providers run on a daemon thread)
        ui: terminal-like object with read_line(), print_assistant(),
            print_error() and print_tool(); optional for handle_turn()
        strict_tool_names: reject duplicate tool names at start()
    """

    def __init__(
        self,
        connections: Mapping[str, ToolConnection],
        provider,
        ui=None,
        strict_tool_names: bool = False,
    ):
        self.connections: Dict[str, ToolConnection] = dict(connections)
        self.provider = provider
        self.ui = ui
        self.strict_tool_names = strict_tool_names
        self.messages: List[Message] = []
        self.registry: Optional[ToolRegistry] = None
        self.executor: Optional[ToolExecutor] = None
        self.state = SessionState.INIT
        self.token = CancellationToken()
        self.last_reply: Optional[str] = None

    # === Public API ===

    def get_messages(self) -> List[Message]:
        """Current transcript (a copy)."""
        return list(self.messages)

    async def start(self):
        """INIT: snapshot the tool catalog and seed the transcript."""
        if self.state is not SessionState.INIT:
            raise RuntimeError(f"Session already started (state: {self.state.value})")

        self.registry = await self.token.guard(
            ToolRegistry.discover(self.connections, strict=self.strict_tool_names)
        )
        self.executor = ToolExecutor(self.registry)
        self.executor.on_tool_start(self._on_tool_start)
        self.executor.on_tool_complete(self._on_tool_done)

        logger.info("Session started with %d tool(s) from %d server(s)", len(self.registry), len(self.connections))
        self._apply(Step(
            SessionState.AWAITING_INPUT,
            messages=(Message("system", build_system_prompt(self.registry.tools)),),
        ))

    async def handle_turn(self, user_input: str) -> Optional[str]:
        """Run one accepted user turn and return the reply (None if the model call failed)."""
        if self.state is SessionState.INIT:
            await self.start()
        if self.state is not SessionState.AWAITING_INPUT:
            raise RuntimeError(f"Cannot accept input in state {self.state.value}")

        self.last_reply = None
        self._apply(Step(SessionState.AWAITING_MODEL, messages=(Message("user", user_input),)))
        await self._advance(stop_at=SessionState.AWAITING_INPUT)
        return self.last_reply

    async def run(self):
        """Interactive loop until exit/quit, end of input or interrupt. Always cleans up."""
        try:
            with interrupt_handler(self.token):
                if self.state is SessionState.INIT:
                    await self.start()
                await self._advance(stop_at=SessionState.TERMINATING)
        except SessionCancelled:
            logger.info("Session interrupted")
        except KeyboardInterrupt:
            logger.info("Session interrupted")
        finally:
            await self.close()

    async def close(self):
        """TERMINATING: close every connection once, best-effort."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED

        for name, connection in self.connections.items():
            try:
                await connection.close()
            except Exception as e:
                logger.warning("Warning during cleanup of server %s: %s", name, e)

    # === State machine ===

    async def _advance(self, stop_at: SessionState):
        pending: Optional[PendingToolCall] = None
        while True:
            if self.state is SessionState.AWAITING_INPUT:
                step = await self._awaiting_input()
            elif self.state is SessionState.AWAITING_MODEL:
                step = await self._awaiting_model()
            elif self.state is SessionState.EXECUTING_TOOL:
                step = await self._executing_tool(pending)
            elif self.state is SessionState.AWAITING_FOLLOWUP:
                step = await self._awaiting_followup()
            else:
                raise RuntimeError(f"No handler for state {self.state.value}")

            self._apply(step)
            pending = step.pending
            if self.state is stop_at or self.state is SessionState.TERMINATING:
                return

    async def _awaiting_input(self) -> Step:
        try:
            line = await self.token.guard(self._read_line())
        except (EOFError, KeyboardInterrupt):
            return Step(SessionState.TERMINATING)

        text = (line or "").strip()
        if text.lower() in EXIT_COMMANDS:
            return Step(SessionState.TERMINATING)
        if not text:
            return Step(SessionState.AWAITING_INPUT)
        return Step(SessionState.AWAITING_MODEL, messages=(Message("user", text),))

    async def _awaiting_model(self) -> Step:
        try:
            response = await self._generate()
        except ProviderError as e:
            logger.error("Model call failed: %s", e)
            return Step(SessionState.AWAITING_INPUT, error=str(e))

        detection = detect_tool_call(response)
        if not detection.is_tool_call:
            return Step(
                SessionState.AWAITING_INPUT,
                messages=(Message("assistant", response),),
                reply=response,
            )

        logger.info(
            "Tool call detected via %s: %s",
            detection.detection_method.value, detection.tool_name,
        )
        return Step(
            SessionState.EXECUTING_TOOL,
            pending=PendingToolCall(response, detection.tool_call_request),
        )

    async def _executing_tool(self, pending: PendingToolCall) -> Step:
        result = await self.token.guard(self.executor.execute(pending.request))
        return Step(
            SessionState.AWAITING_FOLLOWUP,
            messages=(
                Message("assistant", pending.assistant_text),
                Message("system", result.message),
            ),
        )

    async def _awaiting_followup(self) -> Step:
        try:
            followup = await self._generate()
        except ProviderError as e:
            logger.error("Follow-up model call failed: %s", e)
            return Step(SessionState.AWAITING_INPUT, error=str(e))

        return Step(
            SessionState.AWAITING_INPUT,
            messages=(Message("assistant", followup),),
            reply=followup,
        )

    def _apply(self, step: Step):
        self.messages.extend(step.messages)
        self.state = step.next_state
        if step.reply is not None:
            self.last_reply = step.reply
            if self.ui:
                self.ui.print_assistant(step.reply)
        if step.error is not None and self.ui:
            self.ui.print_error(step.error)

    # === External calls ===

    async def _read_line(self) -> str:
        if self.ui is None:
            raise EOFError("No input source")
        return await self.ui.read_line()

    async def _generate(self) -> str:
        messages = self.get_messages()
        generate = self.provider.generate_response
        if inspect.iscoroutinefunction(generate):
            return await self.token.guard(generate(messages))
        return await self.token.guard(run_in_daemon_thread(generate, messages, name="toolchat-model"))

    def _on_tool_start(self, event: ToolEvent):
        if self.ui:
            self.ui.print_tool(f"{event.display} [{event.server}]")

    def _on_tool_done(self, event: ToolEvent):
        if self.ui:
            self.ui.print_tool(f"{event.display} {event.duration:.1f}s", success=event.success)
