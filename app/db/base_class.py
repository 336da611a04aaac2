# /note-polish-backend/app/db/base_class.py

from sqlalchemy.orm import declarative_base, declared_attr


class _Base:
    # Table names default to the lower-cased, pluralised class name
    # (e.g. `Generation` -> `generations`). Models may override it.
    @declared_attr
    def __tablename__(cls) -> str:
        return f"{cls.__name__.lower()}s"


Base = declarative_base(cls=_Base)
