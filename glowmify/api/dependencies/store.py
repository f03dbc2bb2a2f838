from glowmify.repositories.user_repo import UserStore, get_store


def get_user_store() -> UserStore:
    return get_store()
