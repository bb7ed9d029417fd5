class VerificationState:
    """
    Books the current session has passed the quiz for.

    Stored in the Django session, so it expires with the session and is
    cleared on logout. Entries are only ever added.
    """

    SESSION_KEY = "verified_books"

    def __init__(self, session):
        self.session = session

    @classmethod
    def for_request(cls, request):
        return cls(request.session)

    def verified_books(self):
        return set(self.session.get(self.SESSION_KEY, []))

    def is_verified(self, book_id) -> bool:
        return int(book_id) in self.verified_books()

    def mark_verified(self, book_id):
        verified = self.session.get(self.SESSION_KEY, [])
        if int(book_id) not in verified:
            verified.append(int(book_id))
            # Save back to the session
            self.session[self.SESSION_KEY] = verified
