def display_name(user):
    return user.first_name or user.username


def serialize_user(user):
    return {
        "id": user.pk,
        "name": display_name(user),
        "email": user.email,
        "is_admin": user.is_staff,
        "is_active": user.is_active,
        "joined_at": user.date_joined.isoformat(),
    }


def user_summary(user):
    """The denormalised {id, name} pair attached to reviews."""
    return {"id": user.pk, "name": display_name(user)}
