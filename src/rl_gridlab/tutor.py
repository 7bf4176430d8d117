"""
tutor.py - Tutorial steps and the chat tutor that comments on training.

The tutor is an external collaborator: it only ever sees a read-only
`TutorContext`, and any failure of its backend turns into a notice in the
chat instead of reaching the trainer.

The backend ("advisor") is any callable ``advisor(system_prompt, message) ->
str``, typically a thin wrapper around a hosted language-model client.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, List, Optional, Tuple

from .config import HyperParameters
from .stats import EpisodeStat

logger = logging.getLogger(__name__)

Advisor = Callable[[str, str], str]

# Episodes quoted to the tutor
RECENT_EPISODES: int = 5

NO_ADVISOR_NOTICE = "Error: no tutor backend is configured."
EMPTY_REPLY_NOTICE = "The tutor could not produce a reply."
FAILURE_NOTICE = "There was a problem reaching the tutor, please try again."


class TutorialStep(IntEnum):
    INTRO = 0
    ENVIRONMENT = 1
    AGENT_ACTIONS = 2
    Q_TABLE = 3
    TRAINING = 4
    MASTER = 5


TUTORIAL_STEPS = {
    TutorialStep.INTRO: (
        "1. The Goal",
        "Build an agent that learns to reach the goal while avoiding pits and walls.",
    ),
    TutorialStep.ENVIRONMENT: (
        "2. The Environment",
        "The grid world gives the agent a state (its position) and a reward: "
        "+100 for the goal, -100 for a pit, -1 for every step.",
    ),
    TutorialStep.AGENT_ACTIONS: (
        "3. The Agent",
        "The agent makes the decisions. It starts knowing nothing and can move up, down, left or right.",
    ),
    TutorialStep.Q_TABLE: (
        "4. The Q-Table",
        "The Q-table is the agent's memory: the value Q(state, action) of taking an action in a state.",
    ),
    TutorialStep.TRAINING: (
        "5. The Training Loop",
        "Q-learning balances exploration (random moves) and exploitation (the best known move).",
    ),
    TutorialStep.MASTER: (
        "6. Mastery",
        "The agent has optimised its path. Tune the hyperparameters and see how learning speed changes.",
    ),
}


@dataclass(frozen=True)
class TutorContext:
    """Everything the tutor is allowed to know about the current run."""
    step: TutorialStep
    recent_stats: Tuple[EpisodeStat, ...]
    params: HyperParameters

    @classmethod
    def from_trainer(cls, trainer, step: TutorialStep = TutorialStep.INTRO) -> "TutorContext":
        snap = trainer.snapshot()
        return cls(step=TutorialStep(step),
                   recent_stats=snap.stats[-RECENT_EPISODES:],
                   params=snap.params)


def build_system_prompt(context: TutorContext) -> str:
    """Render the tutor's instructions for the given context."""
    recent = ", ".join(f"episode {s.episode}: {s.total_reward:g}" for s in context.recent_stats)
    title, _ = TUTORIAL_STEPS[context.step]
    p = context.params
    return (
        "You are an expert reinforcement-learning tutor for an interactive Q-learning lab.\n"
        f"The user is on tutorial step {int(context.step)} ({title}).\n"
        "\n"
        "Current hyperparameters:\n"
        f"- Learning rate (alpha): {p.learning_rate}\n"
        f"- Discount factor (gamma): {p.discount_factor}\n"
        f"- Exploration rate (epsilon): {p.epsilon}\n"
        "\n"
        f"Recent agent performance (last {RECENT_EPISODES} episodes): [{recent}]\n"
        "\n"
        "Explain concepts simply, encourage the user, and help debug when the agent is not "
        "learning (for example a learning rate that is too high or epsilon that never decays). "
        "Keep answers to at most three short paragraphs of Markdown. If asked about code, explain "
        "the update rule Q(s,a) = Q(s,a) + alpha * (R + gamma * max(Q(s',a')) - Q(s,a))."
    )


@dataclass
class ChatMessage:
    role: str  # "user" or "model"
    text: str


@dataclass
class Tutor:
    """
    Chat session with the tutor.

    Parameters
    ----------
    advisor : callable or None
        ``advisor(system_prompt, message) -> str``. With no advisor every
        question is answered with `NO_ADVISOR_NOTICE`.
    """
    advisor: Optional[Advisor] = None
    history: List[ChatMessage] = field(default_factory=list)

    def ask(self, message: str, context: TutorContext) -> str:
        """
        Send `message` to the advisor and return its reply.

        Never raises on backend failure; the reply is then a notice string.
        Blank messages are ignored and return an empty string.
        """
        if not message.strip():
            return ""
        self.history.append(ChatMessage("user", message))
        reply = self._consult(message, context)
        self.history.append(ChatMessage("model", reply))
        return reply

    def _consult(self, message: str, context: TutorContext) -> str:
        if self.advisor is None:
            return NO_ADVISOR_NOTICE
        try:
            reply = self.advisor(build_system_prompt(context), message)
        except Exception:
            # Tutor problems must never reach the training loop
            logger.warning("Tutor backend failed", exc_info=True)
            return FAILURE_NOTICE
        return reply or EMPTY_REPLY_NOTICE
