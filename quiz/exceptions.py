class NoQuizConfigured(Exception):
    """The book has no verification questions to answer."""


class IncompleteAnswers(Exception):
    """The number of submitted answers does not match the number of questions."""

    def __init__(self, expected, received):
        self.expected = expected
        self.received = received
        super().__init__(f"Must answer all questions: expected {expected} answers, received {received}")
