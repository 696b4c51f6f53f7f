import argparse

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import get_settings


class InvalidToken(Exception):
    pass


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.token_secret, salt="api-token")


def issue_token(user_id: int) -> str:
    return _serializer().dumps({"u": user_id})


def resolve_user_id(token: str) -> int:
    settings = get_settings()
    try:
        data = _serializer().loads(
            token, max_age=settings.token_max_age_hours * 3600
        )
    except SignatureExpired as exc:
        raise InvalidToken("Token expired") from exc
    except BadSignature as exc:
        raise InvalidToken("Invalid token") from exc

    user_id = data.get("u") if isinstance(data, dict) else None
    if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
        raise InvalidToken("Invalid token")
    return user_id


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue an API token for a user")
    parser.add_argument("user_id", type=int)
    args = parser.parse_args()
    print(issue_token(args.user_id))


if __name__ == "__main__":
    main()
