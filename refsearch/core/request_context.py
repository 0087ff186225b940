import contextvars
from contextlib import contextmanager

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)
character_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("character_id", default=None)
stage_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("stage", default=None)


def set_request_id(request_id: str) -> contextvars.Token:
    """Store the current request ID in a context variable."""
    return request_id_var.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    """Reset the request ID context variable to a previous state."""
    request_id_var.reset(token)


def get_request_id() -> str | None:
    """Retrieve the current request ID from the context."""
    return request_id_var.get()


def get_character_id() -> str | None:
    """Retrieve the character currently being searched for logging."""
    return character_id_var.get()


def get_stage() -> str | None:
    """Retrieve the current search stage (analyze, collect, score, select)."""
    return stage_var.get()


@contextmanager
def log_context(character_id: str | None = None, stage: str | None = None):
    """Temporarily scope character/stage context for structured logs."""
    tokens: list[tuple[contextvars.ContextVar[str | None], contextvars.Token]] = []
    if character_id is not None:
        tokens.append((character_id_var, character_id_var.set(str(character_id))))
    if stage is not None:
        tokens.append((stage_var, stage_var.set(stage)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
