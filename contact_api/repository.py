import logging
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from contact_api.errors import StorageError
from contact_api.models import Contact
from contact_api.schemas import ContactResponse
from contact_api.storage import Database
from contact_api.utils import parse_created_at, resolve_limit, resolve_page

logger = logging.getLogger(__name__)


class ContactRepository:
    """
    Data operations on the contacts table.

    Each call opens its own session from the shared Database handle.
    """

    def __init__(self, database: Database):
        self.database = database

    def ping(self) -> bool:
        return self.database.check_health()

    def insert(self, name: str, email: str, message: str) -> Optional[int]:
        """
        Store a new contact.

        Args:
            name: Submitter name
            email: Submitter email
            message: Message body

        Returns:
            The generated id, or None if the store did not report one.
            The row is stored either way.

        Raises:
            StorageError: if the insert fails
        """
        logger.info("Storing contact submission")
        logger.debug(f"Contact details: name={name!r}, email={email!r}, message_length={len(message)}")

        with self.database.session() as db:
            contact = Contact(name=name, email=email, message=message)
            try:
                db.add(contact)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise StorageError(f"Failed to insert contact: {e}") from e

            try:
                contact_id = contact.id
            except SQLAlchemyError as e:
                logger.warning(f"Contact stored but its id could not be read back: {e}")
                return None

        if contact_id is None:
            logger.warning("Contact stored but the store did not report its id")
        else:
            logger.info(f"Contact created successfully: id={contact_id}")
        return contact_id

    def list_page(self, page: int, limit: int) -> Tuple[list[ContactResponse], int]:
        """
        Retrieve one page of contacts, most recent first.

        Args:
            page: 1-indexed page number (clamped to >= 1)
            limit: Page size (clamped to 1-100, invalid values become 10)

        Returns:
            Tuple of (contacts on the page, total number of stored contacts)

        Raises:
            StorageError: if the count or the select fails
        """
        page = resolve_page(page)
        limit = resolve_limit(limit)
        offset = (page - 1) * limit

        logger.info(f"Querying contacts: page={page}, limit={limit}, offset={offset}")

        with self.database.session() as db:
            try:
                total = db.query(func.count(Contact.id)).scalar() or 0
                logger.debug(f"Total contacts: {total}")

                rows = (
                    db.query(Contact)
                    .order_by(Contact.created_at.desc(), Contact.id.desc())
                    .offset(offset)
                    .limit(limit)
                    .all()
                )
            except (SQLAlchemyError, OverflowError) as e:
                raise StorageError(f"Failed to query contacts: {e}") from e

            contacts = [
                ContactResponse(
                    id=row.id,
                    name=row.name,
                    email=row.email,
                    message=row.message,
                    created_at=parse_created_at(row.created_at),
                )
                for row in rows
            ]

        logger.info(f"Retrieved {len(contacts)} of {total} total contacts")
        return contacts, total
