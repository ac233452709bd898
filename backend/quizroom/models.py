from quizroom import db
from quizroom.services.games.questions import Question
import json


class QuestionRecord(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.Text, nullable=False)
    options = db.Column(db.Text, nullable=False)  # JSON-encoded list of strings
    correct_answer = db.Column(db.String(256), nullable=False)
    points = db.Column(db.Integer, nullable=False, default=10)

    @classmethod
    def from_question(cls, question: Question) -> 'QuestionRecord':
        return cls(
            text=question.text,
            options=json.dumps(list(question.options)),
            correct_answer=question.correct_answer,
            points=question.points,
        )

    def to_question(self) -> Question:
        return Question(
            text=self.text,
            options=tuple(json.loads(self.options or '[]')),
            correct_answer=self.correct_answer,
            points=int(self.points or 10),
        )

    def to_dict(self):
        # Admin/debug view; never sent to players
        return {
            'id': self.id,
            'text': self.text,
            'options': json.loads(self.options or '[]'),
            'correct_answer': self.correct_answer,
            'points': self.points,
        }
