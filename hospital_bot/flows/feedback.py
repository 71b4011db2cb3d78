from __future__ import annotations
import re

from hospital_bot.flows.base import Flow, FlowResult, FlowServices
from hospital_bot.flows.effects import NotifyFeedback, PersistFeedback
from hospital_bot.messages import ListRow, ListSection, Reply
from hospital_bot.services.records import FeedbackRecord
from hospital_bot.session.models import START_STEP, FlowId, Session
from hospital_bot.utils.text import normalize

GET_RATING = "get_rating"
GET_COMMENT = "get_comment"

RATING_RE = re.compile(r"(?<!\d)[1-5](?!\d)")
RATING_LABELS = ["Very bad", "Bad", "Okay", "Good", "Very good"]
SKIP_WORDS = {"skip", "no", "chhodo", "छोड़ें"}


class FeedbackFlow(Flow):
    flow_id = FlowId.FEEDBACK

    def __init__(self, services: FlowServices):
        super().__init__(services)
        self.steps = {
            START_STEP: self.step_start,
            GET_RATING: self.step_get_rating,
            GET_COMMENT: self.step_get_comment,
        }

    def rating_picker(self, body: str) -> Reply:
        rows = [ListRow(id=f"rating_{i}", title=f"{i} - {label}") for i, label in enumerate(RATING_LABELS, start=1)]
        return Reply.with_list(body, "Rate", [ListSection(title="Rating", rows=rows)])

    async def step_start(self, text: str, session: Session) -> FlowResult:
        lines = "\n".join(f"{i} - {label}" for i, label in enumerate(RATING_LABELS, start=1))
        body = f"⭐ *Feedback*\n\nHow was your experience?\n\nPlease rate from 1 to 5:\n{lines}"
        return self.advance(session, GET_RATING, self.rating_picker(body))

    async def step_get_rating(self, text: str, session: Session) -> FlowResult:
        m = RATING_RE.search(text)
        if not m:
            return self.stay(session, self.rating_picker("Please send a number between 1 and 5."))
        rating = int(m.group(0))
        return self.advance(
            session,
            GET_COMMENT,
            f"Thank you! Your rating: {'⭐' * rating}\n\nPlease write your feedback in detail (or send \"skip\"):",
            rating=rating,
        )

    async def step_get_comment(self, text: str, session: Session) -> FlowResult:
        comment = "" if normalize(text) in SKIP_WORDS else text.strip()
        record = FeedbackRecord(
            user_id=session.user_id,
            patient_name=self.patient_name(session),
            rating=session.context["rating"],
            comment=comment,
        )
        reply = (
            f"🙏 *Thank you {record.patient_name}!*\n\n"
            "Your feedback is very important to us and helps us improve our service."
        )
        return self.done(
            session,
            self.with_menu_hint(reply),
            side_effects=[PersistFeedback(record=record), NotifyFeedback(record=record)],
        )
