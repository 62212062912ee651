import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from country_cache.core.reconcile import canonical_name
from country_cache.models import LAST_REFRESHED_AT_KEY, Country, Metadata
from country_cache.schemas import CountryRecord, SortOrder, SummarySnapshot, as_utc

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = (
    "source_name",
    "capital",
    "region",
    "population",
    "currency_code",
    "exchange_rate",
    "estimated_gdp",
    "flag_url",
)


class CountryRepository:
    """Persistence gateway for country rows and refresh metadata."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    @contextmanager
    def session(self):
        """Context manager for providing a database session."""
        db_session = self.session_factory()
        try:
            yield db_session
            db_session.commit()  # Commit on successful exit
        except SQLAlchemyError as e:
            db_session.rollback()
            logger.error("Database error occurred. Rolling back transaction: %s", e)
            raise
        except Exception:
            db_session.rollback()
            raise
        finally:
            db_session.close()

    # --- writes ---

    def upsert_all(self, records: Iterable[CountryRecord], as_of: datetime) -> int:
        """
        Insert or overwrite every record by canonical name in one transaction.

        Either every row lands or none does. Returns the number of records
        written.
        """
        records = list(records)
        inserts = updates = 0

        with self.session() as db:
            names = [record.name for record in records]
            existing = {
                country.name: country
                for country in db.query(Country).filter(Country.name.in_(names))
            }

            for record in records:
                country = existing.get(record.name)
                if country is None:
                    country = Country(name=record.name)
                    db.add(country)
                    existing[record.name] = country
                    inserts += 1
                else:
                    updates += 1
                for field in _UPDATABLE_FIELDS:
                    setattr(country, field, getattr(record, field))
                if country.source_name is None:
                    country.source_name = record.name
                country.last_refreshed_at = as_of

        logger.info("Committed countries: %d inserted, %d updated", inserts, updates)
        return inserts + updates

    def delete_by_name(self, name: str) -> bool:
        """Delete one country. Returns False when no such country exists."""
        with self.session() as db:
            deleted = (
                db.query(Country)
                .filter(Country.name == canonical_name(name))
                .delete(synchronize_session=False)
            )
        return deleted > 0

    def set_meta(self, key: str, value: str) -> None:
        with self.session() as db:
            row = db.get(Metadata, key)
            if row is None:
                db.add(Metadata(key=key, value=value))
            else:
                row.value = value

    def set_last_refreshed_at(self, timestamp: datetime) -> None:
        self.set_meta(LAST_REFRESHED_AT_KEY, timestamp.isoformat())

    # --- reads ---

    def get_meta(self, key: str) -> Optional[str]:
        with self.session() as db:
            row = db.get(Metadata, key)
            return row.value if row is not None else None

    def get_last_refreshed_at(self) -> Optional[datetime]:
        value = self.get_meta(LAST_REFRESHED_AT_KEY)
        return as_utc(datetime.fromisoformat(value)) if value else None

    def find_by_name(self, name: str) -> Optional[CountryRecord]:
        with self.session() as db:
            country = (
                db.query(Country).filter(Country.name == canonical_name(name)).first()
            )
            return CountryRecord.model_validate(country) if country else None

    def find_many(
        self,
        region: Optional[str] = None,
        currency_code: Optional[str] = None,
        sort: SortOrder = SortOrder.NAME,
    ) -> List[CountryRecord]:
        with self.session() as db:
            query = db.query(Country)

            if region is not None:
                query = query.filter(Country.region == region)
            if currency_code is not None:
                query = query.filter(Country.currency_code == currency_code)

            # Rows without a GDP sort last in both directions
            if sort == SortOrder.GDP_DESC:
                query = query.order_by(
                    Country.estimated_gdp.is_(None),
                    Country.estimated_gdp.desc(),
                    Country.name.asc(),
                )
            elif sort == SortOrder.GDP_ASC:
                query = query.order_by(
                    Country.estimated_gdp.is_(None),
                    Country.estimated_gdp.asc(),
                    Country.name.asc(),
                )
            else:
                query = query.order_by(Country.name.asc())

            return [CountryRecord.model_validate(c) for c in query.all()]

    def count(self) -> int:
        with self.session() as db:
            return db.query(Country).count()

    def top_by_gdp(self, limit: int = 5) -> List[CountryRecord]:
        with self.session() as db:
            return [
                CountryRecord.model_validate(c)
                for c in self._top_by_gdp(db, limit)
            ]

    def snapshot(self, top: int = 5) -> SummarySnapshot:
        """Everything the summary image needs, read in one session."""
        with self.session() as db:
            meta = db.get(Metadata, LAST_REFRESHED_AT_KEY)
            return SummarySnapshot(
                total_countries=db.query(Country).count(),
                top_countries=[
                    CountryRecord.model_validate(c) for c in self._top_by_gdp(db, top)
                ],
                last_refreshed_at=datetime.fromisoformat(meta.value) if meta else None,
            )

    @staticmethod
    def _top_by_gdp(db, limit):
        return (
            db.query(Country)
            .filter(Country.estimated_gdp.isnot(None))
            .order_by(Country.estimated_gdp.desc(), Country.name.asc())
            .limit(limit)
            .all()
        )
