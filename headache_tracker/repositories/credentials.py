from typing import Callable, Optional
from sqlmodel import select
from headache_tracker.models import StoredCredential

def get_credential(session, *, browser_id: str, key: str) -> Optional[StoredCredential]:
    stmt = (
        select(StoredCredential)
        .where(StoredCredential.browser_id == browser_id)
        .where(StoredCredential.key == key)
        .limit(1)
    )
    return session.exec(stmt).first()

def set_credential(session, *, browser_id: str, key: str, value: str) -> StoredCredential:
    row = get_credential(session, browser_id=browser_id, key=key)
    if row:
        row.value = value
    else:
        row = StoredCredential(browser_id=browser_id, key=key, value=value)
    session.add(row)
    session.commit()
    session.refresh(row)
    return row

def clear_credentials(session, *, browser_id: str) -> int:
    rows = session.exec(select(StoredCredential).where(StoredCredential.browser_id == browser_id)).all()
    for row in rows:
        session.delete(row)
    session.commit()
    return len(rows)


class SqlCredentialStore:
    """
    Credential store for one browser, backed by the StoredCredential table.
    Implements the get/set/clear capability the dashboard expects.
    """

    def __init__(self, session_factory: Callable, browser_id: str):
        self._session_factory = session_factory
        self.browser_id = browser_id

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            row = get_credential(session, browser_id=self.browser_id, key=key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            set_credential(session, browser_id=self.browser_id, key=key, value=value)

    def clear(self) -> None:
        with self._session_factory() as session:
            clear_credentials(session, browser_id=self.browser_id)
