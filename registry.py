"""User registration, one account per email address."""
import logging
from typing import Any, Dict, List

from pydantic import ValidationError as SchemaValidationError
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import USERS, create_document, get_documents, to_public
from errors import ValidationError
from schemas import UserAccount

logger = logging.getLogger("tradehub.registry")

ALREADY_EXISTS = {"message": "User already exists."}


class RegistryService:
    def __init__(self, db: Database):
        self.db = db
        self.users = db[USERS]

    def register_user(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        """Insert ``profile`` unless its email is already registered.

        The lookup answers the common case; the unique index on ``email``
        settles two registrations racing past it.
        """
        email = profile.get("email")
        if not email:
            raise ValidationError("Email is required")
        if self.users.find_one({"email": email}):
            return dict(ALREADY_EXISTS)

        data = {k: v for k, v in profile.items() if k not in ("_id", "id")}
        try:
            doc = UserAccount(**data).model_dump()
        except SchemaValidationError:
            raise ValidationError("Email must be a string")
        try:
            new_id = create_document(self.db, USERS, doc)
        except DuplicateKeyError:
            logger.info("Concurrent registration for %s resolved as existing", email)
            return dict(ALREADY_EXISTS)
        logger.info("Registered user %s (%s)", email, new_id)
        return to_public({"_id": new_id, **doc})

    def list_users(self) -> List[Dict[str, Any]]:
        return get_documents(self.db, USERS)
