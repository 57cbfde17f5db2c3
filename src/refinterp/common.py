from __future__ import annotations


class ControlFlowSignal(BaseException):
    """Internal non-user exceptions used for control flow (break/continue)."""


class BreakSignal(ControlFlowSignal):
    pass


class ContinueSignal(ControlFlowSignal):
    pass
