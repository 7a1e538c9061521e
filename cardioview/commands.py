"""
Voice command dispatch: control phrases first, then catalog keywords.
"""
import logging
import unicodedata
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, Union

from .config import VoiceConfig
from .types import (
    AnatomicalPart, AppMode, ClosePanelCommand, SelectPartCommand, SwitchModeCommand,
)

logger = logging.getLogger(__name__)

Command = Union[ClosePanelCommand, SwitchModeCommand, SelectPartCommand]


def normalize_text(text: str) -> str:
    """
    Fold accents and case so "Aórtica" and "aortica" compare equal.

    Args:
        text: Raw utterance or keyword

    Returns:
        Lower-cased text with combining marks removed
    """
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower().strip()


@dataclass(frozen=True)
class CommandRule:
    """A control command fired when any of its phrases occurs in the utterance."""
    name: str
    phrases: Tuple[str, ...]
    build: Callable[[], Command]

    def matches(self, normalized: str) -> bool:
        return any(normalize_text(phrase) in normalized for phrase in self.phrases)


def default_rules(cfg: VoiceConfig) -> Tuple[CommandRule, ...]:
    """
    Control rules in priority order: close, explore, quiz.

    The order is part of the contract; the first matching rule wins and no
    catalog lookup happens after it.
    """
    return (
        CommandRule("close", tuple(cfg.close_phrases), ClosePanelCommand),
        CommandRule("explore", tuple(cfg.explore_phrases), lambda: SwitchModeCommand(AppMode.EXPLORE)),
        CommandRule("quiz", tuple(cfg.quiz_phrases), lambda: SwitchModeCommand(AppMode.QUIZ)),
    )


class CommandDispatcher:
    """Resolves recognized utterances into commands."""

    def __init__(self, catalog: Sequence[AnatomicalPart], rules: Sequence[CommandRule]):
        """
        Initialize the dispatcher.

        Args:
            catalog: Anatomical parts searchable by keyword
            rules: Ordered control rules
        """
        self.catalog = tuple(catalog)
        self.rules = tuple(rules)

    def dispatch(self, utterance: str) -> Optional[Command]:
        """
        Resolve one final utterance.

        Returns:
            The matched command, or None when nothing matches
        """
        normalized = normalize_text(utterance)
        if not normalized:
            return None

        for rule in self.rules:
            if rule.matches(normalized):
                logger.info("🎙️ Voice command: %s", rule.name)
                return rule.build()

        part = self.best_match(normalized)
        if part is None:
            logger.debug("No voice match for %r", normalized)
            return None

        logger.info("🎙️ Voice match: %s", part.label)
        return SelectPartCommand(part=part)

    def best_match(self, normalized: str) -> Optional[AnatomicalPart]:
        """
        Longest keyword found anywhere in the utterance wins.

        A generic keyword such as "pulmonar" is a substring of "venas
        pulmonares", so the whole catalog is scanned before choosing.
        """
        best: Optional[AnatomicalPart] = None
        best_len = 0

        for part in self.catalog:
            for keyword in part.keywords:
                key = normalize_text(keyword)
                if key and key in normalized and len(key) > best_len:
                    best = part
                    best_len = len(key)

        return best
