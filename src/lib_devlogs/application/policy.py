"""Access policy deciding whether a logger may write.

Purpose
-------
Gate every log call cheaply: the decision only looks at the environment mode,
the tri-state ``enabled`` override and any registered decision hooks.

Decision table
--------------
================  =========  ===========  =========  ===============
mode              unset      false/empty  true       logger name
================  =========  ===========  =========  ===============
non-production    allow      deny         allow      name matches
production        deny       deny         allow      name matches
================  =========  ===========  =========  ===============

Contents
--------
* :data:`DecisionHook` – ``(allowed, logger_name) -> bool`` override callback.
* :class:`AccessPolicy` – the per-logger gate.
* :func:`decide` – the pure decision table.
* :func:`can_view_logs` – gate for the operator surface.
"""

from __future__ import annotations

from typing import Callable, Iterable

from ..domain.settings import PRODUCTION, Override, normalize_environment, normalize_override
from .ports import EnvironmentSource

DecisionHook = Callable[[bool, str], bool]


def decide(logger_name: str, *, production: bool, override: Override) -> bool:
    """Apply the decision table for *logger_name*.

    Examples
    --------
    >>> decide("billing", production=False, override=None)
    True
    >>> decide("billing", production=True, override=None)
    False
    >>> decide("shipping", production=True, override="billing")
    False
    """

    if override is None:
        return not production
    if isinstance(override, str):
        return logger_name == override
    return override


def can_view_logs(environment: str, *, operator: bool = False) -> bool:
    """Return whether stored logs may be viewed, emptied or deleted.

    >>> can_view_logs("local"), can_view_logs("production"), can_view_logs("production", operator=True)
    (True, False, True)
    """

    return operator or normalize_environment(environment) != PRODUCTION


class AccessPolicy:
    """Decide per logger name whether logging is currently permitted."""

    def __init__(
        self,
        environment: EnvironmentSource,
        *,
        override: object = None,
        hooks: Iterable[DecisionHook] = (),
    ) -> None:
        """Initialise the policy.

        Parameters
        ----------
        environment:
            Collaborator reporting the environment mode; consulted on every
            decision so a host may switch modes at runtime.
        override:
            Raw ``enabled`` setting, normalised with
            :func:`~lib_devlogs.domain.settings.normalize_override`.
        hooks:
            Decision hooks applied in registration order.
        """

        self._environment = environment
        self._override = normalize_override(override)
        self._hooks: list[DecisionHook] = list(hooks)

    @property
    def override(self) -> Override:
        return self._override

    def add_hook(self, hook: DecisionHook) -> None:
        """Register *hook*; it receives the decision so far and returns the new one."""

        self._hooks.append(hook)

    def is_production(self) -> bool:
        return normalize_environment(self._environment.environment_type()) == PRODUCTION

    def can_log(self, logger_name: str) -> bool:
        """Return ``True`` when *logger_name* may log right now."""

        allowed = decide(logger_name, production=self.is_production(), override=self._override)
        for hook in self._hooks:
            allowed = bool(hook(allowed, logger_name))
        return allowed
