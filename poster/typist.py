"""
Human-mimicry typing.

Typing is split in two phases. ``plan_typing`` is a pure function that turns
an intended string into an ordered list of keystrokes, each carrying the field
value after the keystroke, the synthetic events to dispatch and the pause that
follows it. ``Typist`` replays such a plan against a live element.

Every value mutation goes through the element's native value setter and is
followed by a plain ``input`` event and an ``InputEvent`` carrying the exact
character, so framework-controlled inputs see organic changes. The plan ends
with ``change`` and ``blur``.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


CHAR_DELAY = (0.05, 0.2)
CLEAR_DELAY = (0.03, 0.08)
FIELD_DELAY = (0.1, 0.4)
TYPO_PAUSE = (0.1, 0.2)
TYPO_FIX_PAUSE = (0.05, 0.1)
TYPO_RATE = 0.02

QWERTY_ROWS = ("1234567890", "qwertyuiop", "asdfghjkl", "zxcvbnm")


def _build_adjacency():
    adj = {}
    for r, row in enumerate(QWERTY_ROWS):
        for c, ch in enumerate(row):
            near = []
            for dr in (-1, 0, 1):
                rr = r + dr
                if not 0 <= rr < len(QWERTY_ROWS):
                    continue
                other = QWERTY_ROWS[rr]
                for dc in (-1, 0, 1):
                    cc = c + dc
                    if (dr, dc) == (0, 0) or not 0 <= cc < len(other):
                        continue
                    near.append(other[cc])
            adj[ch] = "".join(near)
    return adj


ADJACENT_KEYS = _build_adjacency()


def adjacent_key(ch: str, rng: random.Random) -> Optional[str]:
    """A neighbouring key on a QWERTY layout, keeping the case of ``ch``."""
    near = ADJACENT_KEYS.get(ch.lower())
    if not near:
        return None
    wrong = rng.choice(near)
    return wrong.upper() if ch.isupper() else wrong


@dataclass(frozen=True)
class SyntheticEvent:
    type: str
    input_type: Optional[str] = None
    data: Optional[str] = None

    def to_js(self) -> dict:
        return {"type": self.type, "inputType": self.input_type, "data": self.data}


CHANGE = SyntheticEvent("change")
BLUR = SyntheticEvent("blur")


def _insert_events(ch: str) -> Tuple[SyntheticEvent, ...]:
    return (SyntheticEvent("input"), SyntheticEvent("input", "insertText", ch))


def _delete_events() -> Tuple[SyntheticEvent, ...]:
    return (SyntheticEvent("input"), SyntheticEvent("input", "deleteContentBackward", None))


@dataclass(frozen=True)
class Keystroke:
    """One step of a typing plan."""

    kind: str  # clear | type | typo | fix | commit
    value: str
    events: Tuple[SyntheticEvent, ...]
    delay: float = 0.0

    def to_js(self) -> dict:
        return {"value": self.value, "events": [e.to_js() for e in self.events]}


def plan_typing(
    text: str,
    current_value: str = "",
    rng: Optional[random.Random] = None,
    typo_rate: float = TYPO_RATE,
) -> List[Keystroke]:
    """
    Compute the keystrokes that turn ``current_value`` into ``text``.

    The existing value is removed one character at a time, then ``text`` is
    typed one character at a time. Any character but the last may be preceded
    by an adjacent-key typo that is immediately deleted. The final step always
    commits the field with change and blur.
    """
    rng = rng or random.Random()
    text = text or ""
    current_value = current_value or ""
    steps: List[Keystroke] = []

    for i in range(len(current_value), 0, -1):
        steps.append(Keystroke("clear", current_value[: i - 1], _delete_events(), rng.uniform(*CLEAR_DELAY)))

    typed = ""
    last = len(text) - 1
    for idx, ch in enumerate(text):
        if idx < last and rng.random() < typo_rate:
            wrong = adjacent_key(ch, rng)
            if wrong:
                steps.append(Keystroke("typo", typed + wrong, _insert_events(wrong), rng.uniform(*TYPO_PAUSE)))
                steps.append(Keystroke("fix", typed, _delete_events(), rng.uniform(*TYPO_FIX_PAUSE)))
        typed += ch
        steps.append(Keystroke("type", typed, _insert_events(ch), rng.uniform(*CHAR_DELAY)))

    steps.append(Keystroke("commit", text, (CHANGE, BLUR), 0.0))
    return steps


READ_VALUE_JS = """
(el) => el.isContentEditable ? (el.textContent || '') : (el.value || '')
"""

APPLY_STEP_JS = """
(el, step) => {
  if (el.isContentEditable) {
    el.textContent = step.value;
  } else {
    const proto = el instanceof HTMLTextAreaElement
      ? HTMLTextAreaElement.prototype
      : HTMLInputElement.prototype;
    const desc = Object.getOwnPropertyDescriptor(proto, 'value');
    if (desc && desc.set) { desc.set.call(el, step.value); } else { el.value = step.value; }
  }
  for (const ev of step.events) {
    if (ev.type === 'blur') {
      el.dispatchEvent(new FocusEvent('blur', { bubbles: false }));
      el.dispatchEvent(new FocusEvent('focusout', { bubbles: true }));
    } else if (ev.inputType) {
      el.dispatchEvent(new InputEvent('input', { bubbles: true, inputType: ev.inputType, data: ev.data }));
    } else {
      el.dispatchEvent(new Event(ev.type, { bubbles: true }));
    }
  }
  return el.isContentEditable ? el.textContent : el.value;
}
"""


class Typist:
    """Replays typing plans against Playwright element locators."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        typo_rate: float = TYPO_RATE,
    ):
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.typo_rate = typo_rate

    async def type(self, element, text: str) -> str:
        """Type ``text`` into ``element`` and return the value read back."""
        await self.sleep(self.rng.uniform(*FIELD_DELAY))
        try:
            await element.focus()
        except PlaywrightError as e:
            logger.debug("Focus failed before typing: %s", e)

        current = await element.evaluate(READ_VALUE_JS)
        plan = plan_typing(text, current, self.rng, self.typo_rate)
        value = current
        for step in plan:
            value = await element.evaluate(APPLY_STEP_JS, step.to_js())
            if step.delay:
                await self.sleep(step.delay)

        if value != text:
            logger.warning("Typed %r but field reads %r", text, value)
        return value
