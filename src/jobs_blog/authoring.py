# -*- coding: utf-8 -*-
"""
Post authoring flow.

A post goes from source input (URL or pasted text, optionally rewritten by the
AI service) to an editable draft, which can be previewed and finally published
or saved as a draft:

    input -> setup <-> preview -> done

A failed collaborator call (AI rewrite, persistence) leaves the flow in the
state it was in so the author can try again. Nothing is retried automatically.
"""
import inspect
import logging
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol
from uuid import uuid4

from .config import settings
from .database import DuplicateSlugError
from .db_models import PostStatus
from .formatting import FormatKind, insert_formatting
from .renderer import RenderedContent, render_content
from .rewriter import RewriteError, RewriteResult, SourceKind
from .word_count import WordCountResult, check_word_count

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "content",
    "category",
    "featured_image_url",
    "application_link",
    "author",
    "content_format",
)

# Draft fields that may be cleared to None
NULLABLE_FIELDS = ("category", "application_link")


class FlowState(str, Enum):
    """Steps of the authoring flow."""

    INPUT = "input"
    SETUP = "setup"
    PREVIEW = "preview"
    DONE = "done"


class AuthoringError(Exception):
    """Base class for authoring flow errors."""


class InvalidTransition(AuthoringError):
    """Raised when an action is not allowed in the current state."""

    def __init__(self, action: str, state: FlowState):
        super().__init__(f"Cannot {action} while in '{state.value}' state")
        self.action = action
        self.state = state


class PublishValidationError(AuthoringError):
    """Raised when a post is not ready to be stored."""

    def __init__(self, message: str, words_needed: int = 0):
        super().__init__(message)
        self.message = message
        self.words_needed = words_needed


class CollaboratorError(AuthoringError):
    """Raised when the AI rewrite or persistence service fails."""


class Rewriter(Protocol):
    async def rewrite(
            self,
            source_text: str,
            source_kind: SourceKind = "text",
            api_key: str | None = None,
            min_words: int | None = None,
    ) -> RewriteResult: ...


class PostStore(Protocol):
    async def create_post(self, fields: dict[str, Any]) -> dict[str, Any]: ...

    async def update_post(self, post_id: str, fields: dict[str, Any]) -> dict[str, Any] | None: ...


CompletionCallback = Callable[[dict[str, Any]], Awaitable[None] | None]


@dataclass
class PostDraft:
    """Fields being edited."""

    title: str = ""
    content: str = ""
    category: str | None = None
    featured_image_url: str = ""
    application_link: str | None = None
    author: str = settings.DEFAULT_AUTHOR
    content_format: str = "auto"


def word_gate_message(result: WordCountResult) -> str:
    return (
        f"Your content has {result.count} words. Minimum {result.minimum} required "
        f"({result.words_needed} more words needed)."
    )


def validate_for_publish(draft: PostDraft, status: PostStatus, min_word_count: int) -> None:
    """
    Check a draft before it is stored.

    The title is always required. Publishing additionally needs a featured
    image and at least ``min_word_count`` words; saving a draft does not.

    Raises:
        PublishValidationError: describing the first problem found
    """
    if not draft.title.strip():
        raise PublishValidationError("Title is required")

    if status != "published":
        return

    if not draft.featured_image_url.strip():
        raise PublishValidationError("Featured image URL is required to publish")

    result = check_word_count(draft.content, min_word_count)
    if not result.meets_minimum:
        raise PublishValidationError(word_gate_message(result), result.words_needed)


class AuthoringFlow:
    """State machine driving the creation or edition of one post."""

    def __init__(
            self,
            rewriter: Rewriter,
            store: PostStore,
            min_word_count: int = settings.MIN_WORD_COUNT,
            on_complete: CompletionCallback | None = None,
            api_key: str | None = None,
    ):
        self.rewriter = rewriter
        self.store = store
        self.min_word_count = min_word_count
        self.on_complete = on_complete
        self.api_key = api_key

        self.state = FlowState.INPUT
        self.draft = PostDraft()
        self.post_id: str | None = None
        self.record: dict[str, Any] | None = None
        self.used_fallback = False

    @classmethod
    def for_existing_post(
            cls,
            post: dict[str, Any],
            rewriter: Rewriter,
            store: PostStore,
            **kwargs,
    ) -> "AuthoringFlow":
        """Start editing a stored post directly in the setup step."""
        flow = cls(rewriter, store, **kwargs)
        flow.post_id = post["id"]
        flow.draft = PostDraft(
            title=post.get("title") or "",
            content=post.get("content") or "",
            category=post.get("category"),
            featured_image_url=post.get("featured_image_url") or "",
            application_link=post.get("application_link"),
            author=post.get("author") or settings.DEFAULT_AUTHOR,
        )
        flow.state = FlowState.SETUP
        return flow

    def _require(self, action: str, *states: FlowState) -> None:
        if self.state not in states:
            raise InvalidTransition(action, self.state)

    @property
    def word_count(self) -> WordCountResult:
        return check_word_count(self.draft.content, self.min_word_count)

    # -------------------------------------------------------------------------
    # input
    # -------------------------------------------------------------------------
    def skip(self) -> None:
        """Go to the editor without AI rewrite, starting from empty content."""
        self._require("skip", FlowState.INPUT)
        self.draft.content = ""
        self.state = FlowState.SETUP

    async def generate(self, source_text: str, source_kind: SourceKind = "text") -> RewriteResult:
        """
        Rewrite the source with the AI service and move to the editor.

        Raises:
            CollaboratorError: if the rewrite fails (state stays INPUT)
        """
        self._require("generate", FlowState.INPUT)
        try:
            result = await self.rewriter.rewrite(
                source_text,
                source_kind=source_kind,
                api_key=self.api_key,
                min_words=self.min_word_count,
            )
        except RewriteError as e:
            logger.warning(f"AI rewrite failed: {e}")
            raise CollaboratorError(f"AI rewrite failed: {e}") from e

        self.draft.title = result.title
        self.draft.content = result.content
        self.used_fallback = result.used_fallback
        self.state = FlowState.SETUP
        return result

    # -------------------------------------------------------------------------
    # setup
    # -------------------------------------------------------------------------
    def update(self, **fields: Any) -> None:
        """Edit draft fields. Unknown fields, or None for a required field, raise ValueError."""
        self._require("edit", FlowState.SETUP)
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
        cleared = sorted(
            name for name, value in fields.items()
            if value is None and name not in NULLABLE_FIELDS
        )
        if cleared:
            raise ValueError(f"Fields cannot be empty: {', '.join(cleared)}")
        for name, value in fields.items():
            setattr(self.draft, name, value)

    def insert_formatting(
            self,
            kind: FormatKind,
            start: int,
            end: int | None = None,
            link: str | None = None,
    ) -> int:
        """Apply a toolbar action to the content. Returns the new cursor position."""
        self._require("format", FlowState.SETUP)
        self.draft.content, cursor = insert_formatting(
            self.draft.content, kind, start, end, link=link
        )
        return cursor

    def preview(self) -> RenderedContent:
        """Render the draft for display. The stored content is not modified."""
        self._require("preview", FlowState.SETUP, FlowState.PREVIEW)
        rendered = render_content(self.draft.content, self.draft.content_format)
        self.state = FlowState.PREVIEW
        return rendered

    def back(self) -> None:
        """Return from preview to the editor."""
        self._require("go back", FlowState.PREVIEW)
        self.state = FlowState.SETUP

    # -------------------------------------------------------------------------
    # publish
    # -------------------------------------------------------------------------
    def _post_fields(self, status: PostStatus) -> dict[str, Any]:
        fields = asdict(self.draft)
        fields.pop("content_format")
        fields["status"] = status
        fields["featured_image_url"] = (
            fields["featured_image_url"].strip() or settings.DEFAULT_FEATURED_IMAGE
        )
        return fields

    async def publish(self, status: PostStatus = "published") -> dict[str, Any]:
        """
        Validate and store the post, then finish the flow.

        The word-count gate only applies when ``status`` is "published".

        Raises:
            PublishValidationError: if the draft is not ready
            DuplicateSlugError: if another post has the same slug
            CollaboratorError: if the store fails
        """
        self._require("publish", FlowState.SETUP, FlowState.PREVIEW)
        validate_for_publish(self.draft, status, self.min_word_count)

        fields = self._post_fields(status)
        try:
            if self.post_id:
                record = await self.store.update_post(self.post_id, fields)
                if record is None:
                    raise CollaboratorError("Post no longer exists")
            else:
                record = await self.store.create_post(fields)
        except (AuthoringError, DuplicateSlugError):
            raise
        except Exception as e:
            logger.error(f"Saving post failed: {e}")
            raise CollaboratorError(f"Saving post failed: {e}") from e

        self.record = record
        self.post_id = record["id"]
        self.state = FlowState.DONE
        logger.info(
            "Post saved from authoring flow",
            extra={"post_id": record["id"], "status": status},
        )

        if self.on_complete is not None:
            result = self.on_complete(record)
            if inspect.isawaitable(result):
                await result
        return record

    def snapshot(self) -> dict[str, Any]:
        """Serializable view of the flow."""
        words = self.word_count
        return {
            "state": self.state.value,
            "post_id": self.post_id,
            "draft": asdict(self.draft),
            "word_count": words.count,
            "min_word_count": words.minimum,
            "meets_minimum": words.meets_minimum,
            "used_fallback": self.used_fallback,
            "record": self.record,
        }


class AuthoringSessions:
    """
    In-memory registry of authoring flows, keyed by session id.

    Opening a session prunes finished flows and flows idle for longer than
    max_idle seconds.
    """

    def __init__(
            self,
            max_idle: float | None = None,
            clock: Callable[[], float] = time.monotonic,
    ):
        self.max_idle = (
            max_idle if max_idle is not None else settings.AUTHORING_SESSION_IDLE_MINUTES * 60
        )
        self._clock = clock
        self._flows: dict[str, AuthoringFlow] = {}
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._flows)

    def add(self, flow: AuthoringFlow) -> str:
        self.prune()
        session_id = str(uuid4())
        self._flows[session_id] = flow
        self._last_seen[session_id] = self._clock()
        return session_id

    def get(self, session_id: str) -> AuthoringFlow | None:
        flow = self._flows.get(session_id)
        if flow is not None:
            self._last_seen[session_id] = self._clock()
        return flow

    def discard(self, session_id: str) -> bool:
        self._last_seen.pop(session_id, None)
        return self._flows.pop(session_id, None) is not None

    def prune(self) -> int:
        """Drop finished and idle flows. Returns how many were removed."""
        now = self._clock()
        expired = [
            session_id
            for session_id, flow in self._flows.items()
            if flow.state == FlowState.DONE or now - self._last_seen[session_id] > self.max_idle
        ]
        for session_id in expired:
            self.discard(session_id)
        if expired:
            logger.debug(f"Pruned {len(expired)} authoring sessions")
        return len(expired)


# Global registry used by the admin API
authoring_sessions = AuthoringSessions()
