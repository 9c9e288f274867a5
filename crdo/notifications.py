"""Streak and reminder notifications."""

import logging
import random
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)


MORNING_MESSAGES: List[str] = [
    "Somehow you've worked out 3 days in a row. Who even are you?? Don't break the illusion, get today's session in.",
    "Rise and cardio, legend. Or snooze and lose. Your move.",
    "That streak isn't going to save itself. Open CRDO and be the gym class hero you never were.",
    "Legend has it if you hit 14 days, a protein bar spawns in your kitchen. One more workout and you might find out.",
    "The streak is strong with you. Unlike your knees, probably. Warm up. Then unleash chaos.",
]

EVENING_MESSAGES: List[str] = [
    "Still time to do cardio! Or sit in guilt and scroll memes. Do the one that helps your heart.",
    "Yes, we know these notifications are annoying. But so is starting over. Move it.",
    "Don't let your streak become just another broken dream. Do it for the streak.",
    "CRDO: reminding you to move so your future self doesn't file a complaint.",
]

STREAK_TEMPLATES: List[str] = [
    "🔥 {streak}-day streak! You're on fire!",
    "💪 {streak} days strong! Keep it up!",
    "🏆 {streak} days in a row! You're unstoppable!",
    "⚡ {streak} day streak! You're crushing it!",
    "🌟 {streak} days! You're becoming a legend!",
]


Delivery = Callable[[str, str], None]


def _log_delivery(title: str, body: str) -> None:
    logger.info(f"{title}: {body}")


class StreakNotifier:
    """Builds notification messages and hands them to a delivery callable."""

    def __init__(self, deliver: Optional[Delivery] = None, rng: Optional[random.Random] = None):
        self._deliver = deliver or _log_delivery
        self._rng = rng or random.Random()

    def streak_message(self, streak: int) -> str:
        return self._rng.choice(STREAK_TEMPLATES).format(streak=streak)

    def schedule_streak_notification(self, streak: int) -> None:
        """Fire-and-forget streak update. Delivery failures are logged."""
        try:
            self._deliver("CRDO Streak Update", self.streak_message(streak))
        except Exception as e:
            logger.warning(f"Failed to deliver streak notification: {e}")

    def daily_reminder(self, hour: int) -> str:
        """Reminder text for the morning (before noon) or evening slot."""
        messages = MORNING_MESSAGES if hour < 12 else EVENING_MESSAGES
        return self._rng.choice(messages)
