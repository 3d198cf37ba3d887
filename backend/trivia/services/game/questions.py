import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Iterator, Tuple

OPTIONS_PER_QUESTION = 4


class QuestionBankError(ValueError):
    pass


@dataclass(frozen=True)
class Question:
    prompt: str
    options: Tuple[str, ...]
    answer: int

    def to_payload(self, index: int, total: int) -> dict:
        return {
            'question': self.prompt,
            'options': list(self.options),
            'index': index,
            'total': total,
        }


class QuestionBank(Sequence):
    """Ordered, read-only list of questions for one game cycle.

    Questions have no identity beyond their position in the bank.
    """

    def __init__(self, questions):
        self._questions: Tuple[Question, ...] = tuple(questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __getitem__(self, index):
        return self._questions[index]

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)


def question_from_dict(data, position: int = 0) -> Question:
    """Build a Question from a `{"question", "options", "answer"}` mapping."""
    if not isinstance(data, dict):
        raise QuestionBankError(f"question #{position} must be an object")
    prompt = data.get('question')
    options = data.get('options')
    answer = data.get('answer')
    if not isinstance(prompt, str) or not prompt.strip():
        raise QuestionBankError(f"question #{position} is missing its text")
    if not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
        raise QuestionBankError(f"question #{position} needs exactly {OPTIONS_PER_QUESTION} options")
    if not all(isinstance(o, str) for o in options):
        raise QuestionBankError(f"question #{position} options must be strings")
    if isinstance(answer, bool) or not isinstance(answer, int) or not 0 <= answer < len(options):
        raise QuestionBankError(f"question #{position} has an invalid answer index: {answer!r}")
    return Question(prompt=prompt, options=tuple(options), answer=answer)


def load_question_bank(path) -> QuestionBank:
    try:
        with open(path, encoding='utf-8') as fh:
            raw = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise QuestionBankError(f"cannot read question bank {path}: {exc}") from exc
    if not isinstance(raw, list):
        raise QuestionBankError(f"question bank {path} must be a JSON list")
    return QuestionBank(question_from_dict(item, i) for i, item in enumerate(raw))


_DEFAULT_QUESTIONS = [
    {"question": "What does the <a> tag represent in HTML?", "options": ["An article", "An abbreviation", "A hyperlink", "An accent"], "answer": 2},
    {"question": "Which CSS property is used to make text bold?", "options": ["font-style", "font-weight", "text-decoration", "text-transform"], "answer": 1},
    {"question": "What symbol is used to select an element by its ID in CSS?", "options": [". (dot)", "# (hash)", "$ (dollar)", "& (ampersand)"], "answer": 1},
    {"question": "In JavaScript, what does `===` check for?", "options": ["Value only", "Reference only", "Value and type", "If a variable exists"], "answer": 2},
    {"question": "Which `git` command is used to upload your local commits to GitHub?", "options": ["git upload", "git fetch", "git commit", "git push"], "answer": 3},
    {"question": "What company originally developed the React library?", "options": ["Google", "Microsoft", "Facebook (Meta)", "Oracle"], "answer": 2},
    {"question": "The 'This is Fine' meme features a dog in a room that is...?", "options": ["Flooding", "On fire", "Freezing", "Full of cats"], "answer": 1},
    {"question": "What is the main purpose of an API?", "options": ["To style websites", "To allow applications to communicate", "To secure a database", "To animate elements"], "answer": 1},
    {"question": "What does 'CSS' stand for?", "options": ["Cascading Style Sheets", "Creative Style System", "Computer Style Syntax", "Colorful Styling Sheets"], "answer": 0},
    {"question": "In the 'Distracted Boyfriend' meme, what does the boyfriend's original partner usually represent?", "options": ["A new trend", "A fun distraction", "The responsible choice", "A past mistake"], "answer": 2},
    {"question": "Which of these is a popular version control system?", "options": ["Docker", "Webpack", "Git", "Node.js"], "answer": 2},
    {"question": "What does '404' mean in HTTP status codes?", "options": ["OK", "Server Error", "Redirect", "Not Found"], "answer": 3},
    {"question": "The 'Stonks' meme character is typically associated with...?", "options": ["Good financial decisions", "Expert cooking skills", "Questionable financial decisions", "Athletic success"], "answer": 2},
    {"question": "What does the `<img>` tag need in order to display an image?", "options": ["class attribute", "style attribute", "src attribute", "alt attribute"], "answer": 2},
    {"question": "In VS Code, what is the default shortcut to open the command palette?", "options": ["Ctrl+P", "Ctrl+Shift+P", "Ctrl+Alt+P", "Ctrl+Space"], "answer": 1},
    {"question": "Which of these is NOT a programming language?", "options": ["Python", "JavaScript", "HTML", "Java"], "answer": 2},
    {"question": "What is the block-building game that was sold to Microsoft for $2.5 billion?", "options": ["Roblox", "Terraria", "Fortnite", "Minecraft"], "answer": 3},
    {"question": "Which company's logo is a bitten apple?", "options": ["Samsung", "Microsoft", "Apple", "Google"], "answer": 2},
    {"question": "What does 'NaN' stand for in JavaScript?", "options": ["No Action Needed", "Not a Number", "New Asset Name", "Null and Negated"], "answer": 1},
    {"question": "What is the mascot of GitHub?", "options": ["The Octocat", "The GitGopher", "The CodeCat", "The HubLlama"], "answer": 0},
]


def default_question_bank() -> QuestionBank:
    return QuestionBank(question_from_dict(item, i) for i, item in enumerate(_DEFAULT_QUESTIONS))
