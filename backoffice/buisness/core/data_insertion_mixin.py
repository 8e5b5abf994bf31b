"""
Dictionary conversion for the back-office models.

``from_dict`` builds an unsaved instance from request or seed data and fills
the audit columns; ``to_dict`` produces the JSON-ready representation used by
every API response. Neither method commits: the caller owns the transaction.
"""

from datetime import date, datetime

from sqlalchemy import inspect

from backoffice import db
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.buisness.core.data_insertion")

AUDIT_FIELDS = ('created_at', 'updated_at', 'created_by_id', 'updated_by_id')


class DataInsertionMixin:
    """
    Mixin adding dictionary conversion to SQLAlchemy models.

    - from_dict(): unsaved instance from a dictionary
    - to_dict(): JSON-ready dictionary of the column values
    - find_or_create_from_dict(): lookup by unique columns, else add a new row
    """

    # Columns that from_dict never copies from caller data
    protected_fields = ('id', 'version_id')

    @classmethod
    def from_dict(cls, data_dict, user_id=None, skip_fields=None):
        """
        Create a model instance from a dictionary.

        Args:
            data_dict (dict): Column values; unknown keys are ignored
            user_id (int, optional): User recorded in the audit columns
            skip_fields (list, optional): Keys to ignore in addition to the protected ones

        Returns:
            Model instance (not added to the session)
        """
        skip = set(skip_fields or ()) | set(cls.protected_fields)
        columns = {c.key for c in inspect(cls).columns}

        filtered_data = {}
        for key, value in data_dict.items():
            if key not in columns or key in skip:
                continue
            if key == 'password_hash':
                continue
            if key in ('created_at', 'updated_at') and value is None:
                continue
            filtered_data[key] = value

        instance = cls(**filtered_data)

        if 'password' in data_dict and hasattr(instance, 'set_password'):
            instance.set_password(data_dict['password'])

        if user_id is not None:
            if hasattr(instance, 'created_by_id') and not instance.created_by_id:
                instance.created_by_id = user_id
            if hasattr(instance, 'updated_by_id'):
                instance.updated_by_id = user_id

        return instance

    def to_dict(self, include_audit_fields=True, exclude=None):
        """
        Convert the instance to a dictionary of column values.

        Dates and datetimes are rendered as ISO-8601 strings.
        """
        exclude = set(exclude or ())
        exclude.add('password_hash')
        result = {}

        for column in inspect(self.__class__).columns:
            if column.key in exclude:
                continue
            if not include_audit_fields and column.key in AUDIT_FIELDS:
                continue
            value = getattr(self, column.key)
            if isinstance(value, (datetime, date)):
                result[column.key] = value.isoformat()
            else:
                result[column.key] = value

        return result

    @classmethod
    def find_or_create_from_dict(cls, data_dict, user_id=None, skip_fields=None, lookup_fields=None):
        """
        Find an existing row or add a new one built from ``data_dict``.

        Args:
            lookup_fields (list, optional): Columns to match on (default: unique columns present)

        Returns:
            tuple: (instance, created)
        """
        if lookup_fields is None:
            lookup_fields = [c.key for c in inspect(cls).columns if c.unique and c.key in data_dict]

        lookup_data = {field: data_dict[field] for field in lookup_fields if field in data_dict}
        if lookup_data:
            existing = cls.query.filter_by(**lookup_data).first()
            if existing:
                logger.debug(f"Found existing {cls.__name__}: {existing}")
                return existing, False

        instance = cls.from_dict(data_dict, user_id, skip_fields)
        db.session.add(instance)
        db.session.flush()
        logger.info(f"Created {cls.__name__}: {instance}")
        return instance, True
