"""Interactive assistant - edits the session brief through tool calls."""

from ..clients.base import AssistantBackend
from ..config import MAX_ASSISTANT_ROUNDS
from ..errors import ToolCallError
from ..models import AssistantReply, BriefFieldsUpdate, ChatMessage, Session, ToolCall, ToolResult
from ..models.brief import UPDATE_BRIEF_TOOL

GREETING = "Hi, let's get started."
START_FAILED = "Sorry, I had a problem getting started. Please try again."
CONNECTION_FAILED = "There was a connection error. Could you repeat that?"
TOOL_SUCCESS = "success: fields updated in the form"
ROUND_LIMIT = "error: tool round limit reached"


class AssistantSession:
    """
    Turn-based conversation bound to a session's brief.

    Each user turn may trigger automatic tool rounds: every update_brief_fields
    call replaces the named brief fields and is answered with a synthetic
    result, until a reply carries no tool calls or `max_rounds` is reached.
    """

    def __init__(
        self,
        backend: AssistantBackend,
        session: Session,
        max_rounds: int = MAX_ASSISTANT_ROUNDS,
    ):
        self.backend = backend
        self.session = session
        self.max_rounds = max_rounds
        self.messages: list[ChatMessage] = []
        self.rounds_last_turn = 0
        # Calls the backend made that were never answered
        self.pending_calls: tuple[ToolCall, ...] = ()

    async def start(self) -> ChatMessage | None:
        """Send the opening greeting and record the assistant's first message."""
        return await self._turn(GREETING, visible=False, failure_text=START_FAILED)

    async def send(self, text: str) -> ChatMessage | None:
        """Run one user turn; return the assistant's visible reply, if any."""
        text = text.strip()
        if not text:
            return None
        return await self._turn(text, visible=True, failure_text=CONNECTION_FAILED)

    async def _turn(self, text: str, visible: bool, failure_text: str) -> ChatMessage | None:
        if visible:
            self.messages.append(ChatMessage(role="user", text=text))
        self.rounds_last_turn = 0

        try:
            if self.pending_calls:
                await self._decline(self.pending_calls)
            reply = await self.backend.send(text, self.session.brief)
            while reply.tool_calls:
                if self.rounds_last_turn >= self.max_rounds:
                    print(f"Assistant tool loop stopped after {self.rounds_last_turn} rounds", flush=True)
                    self.session.record_error(
                        f"Assistant stopped after {self.max_rounds} automatic tool rounds"
                    )
                    reply = await self._decline(reply.tool_calls)
                    break
                self.rounds_last_turn += 1
                results = [self._execute(call) for call in reply.tool_calls]
                reply = await self.backend.send(results, self.session.brief)
        except Exception as e:
            print(f"Chat error: {e}", flush=True)
            return self._append(failure_text)

        if reply.text and reply.text.strip():
            return self._append(reply.text.strip())
        return None

    async def _decline(self, calls: tuple[ToolCall, ...]) -> AssistantReply:
        """Answer calls without applying them so the chat can take new messages."""
        declined = [ToolResult(call=call, result=ROUND_LIMIT) for call in calls]
        reply = await self.backend.send(declined, self.session.brief)
        self.pending_calls = reply.tool_calls
        return reply

    def _execute(self, call: ToolCall) -> ToolResult:
        """Apply one tool call to the brief and build its synthetic result."""
        if call.name != UPDATE_BRIEF_TOOL:
            return ToolResult(call=call, result=f"error: unknown tool {call.name}")
        try:
            update = BriefFieldsUpdate.from_args(call.args)
        except ToolCallError as e:
            return ToolResult(call=call, result=f"error: {e}")

        print(f"Assistant updating fields: {sorted(update.changed_fields())}", flush=True)
        self.session.brief = update.apply_to(self.session.brief)
        return ToolResult(call=call, result=TOOL_SUCCESS)

    def _append(self, text: str) -> ChatMessage:
        message = ChatMessage(role="model", text=text)
        self.messages.append(message)
        return message
