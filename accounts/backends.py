from django.contrib.auth.backends import BaseBackend
from django.contrib.auth import get_user_model

User = get_user_model()

class EmailBackend(BaseBackend):
    """
    Authenticate with email and password, falling back to username and password
    """

    def authenticate(self, request, username=None, password=None, email=None, **kwargs):

        identifier = email or username

        if not identifier or password is None:
            return None

        user = User.objects.filter(email__iexact=identifier).order_by('pk').first()

        if user is None:
            try:
                user = User.objects.get(username=identifier)
            except User.DoesNotExist:
                return None

        if user.check_password(password):
            return user

        return None


    def get_user(self, user_id):
        try:
            user = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            return None

        return user if self.user_can_authenticate(user) else None


    def user_can_authenticate(self, user):
        # Mimics Django's default backend check (e.g. user.is_active)
        return getattr(user, 'is_active', False)

