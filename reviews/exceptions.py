class NotVerified(Exception):
    """The reviewer has not passed the verification quiz for the book."""

    def __init__(self, book_id):
        self.book_id = book_id
        super().__init__("You must correctly answer the verification questions before reviewing this book")
