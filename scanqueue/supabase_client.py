"""Supabase (PostgREST) attendance repository."""
import asyncio
import time
from typing import Optional, Any
import requests

from scanqueue import settings
from scanqueue.errors import RepositoryError
from scanqueue.logging_conf import logger
from scanqueue.repository import InsertOutcome, Member

UNIQUE_VIOLATION = "23505"
MAX_RETRIES = 3


class SupabaseClient:
    """Reads members and writes attendance rows through the Supabase REST API."""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None,
                 members_table: Optional[str] = None, attendance_table: Optional[str] = None):
        self.base_url = f"{(url or settings.SUPABASE_URL).rstrip('/')}/rest/v1"
        self.members_table = members_table or settings.MEMBERS_TABLE
        self.attendance_table = attendance_table or settings.ATTENDANCE_TABLE
        key = key or settings.SUPABASE_KEY
        self.session = requests.Session()
        self.session.headers.update({
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    def get_member(self, id_number: str) -> Optional[Member]:
        """
        Fetch the member registered under an ID number.

        Args:
            id_number: Scanned identifier

        Returns:
            Member or None if no row matches
        """
        response = self._request("GET", f"/{self.members_table}", params={
            "select": "id,id_number,missionary_name,chapter",
            "id_number": f"eq.{id_number}",
            "limit": "1",
        })
        if not response.ok:
            logger.warning(f"Member lookup for {id_number} failed: HTTP {response.status_code}",
                           extra={"identifier": id_number})
            return None

        rows = response.json()
        if not rows:
            return None
        row = rows[0]
        return Member(
            id=str(row["id"]),
            id_number=str(row["id_number"]),
            name=row["missionary_name"],
            chapter=row.get("chapter"),
        )

    def record_attendance(self, member: Member) -> InsertOutcome:
        """Insert an attendance row and classify the response."""
        response = self._request("POST", f"/{self.attendance_table}", json={
            "missionary_id": member.id,
            "missionary_name": member.name,
            "chapter": member.chapter,
            "attendance_status": "Present",
        }, headers={"Prefer": "return=minimal"})

        if response.ok:
            return InsertOutcome.SUCCESS
        code = self._error_code(response)
        # PostgREST also answers 409 for foreign key violations
        if code == UNIQUE_VIOLATION or (code is None and response.status_code == 409):
            return InsertOutcome.CONFLICT

        logger.warning(f"Attendance insert for {member.id_number} failed: HTTP {response.status_code} {response.text[:200]}",
                       extra={"identifier": member.id_number})
        return InsertOutcome.ERROR

    def _error_code(self, response: requests.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("code") if isinstance(body, dict) else None

    def _request(self, method: str, endpoint: str, retry_count: int = 0, **kwargs: Any) -> requests.Response:
        """Make API request with retry logic."""
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.request(method=method, url=url, timeout=30, **kwargs)

            if response.status_code == 429 and retry_count < MAX_RETRIES:
                retry_after = int(response.headers.get("Retry-After", 5))
                logger.warning(f"Rate limited. Waiting {retry_after}s...")
                time.sleep(retry_after)
                return self._request(method, endpoint, retry_count + 1, **kwargs)

            if response.status_code >= 500 and retry_count < MAX_RETRIES:
                wait_time = 2 ** retry_count
                logger.warning(f"Server error {response.status_code}. Retrying in {wait_time}s...")
                time.sleep(wait_time)
                return self._request(method, endpoint, retry_count + 1, **kwargs)

            return response

        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            if retry_count < MAX_RETRIES:
                wait_time = 2 ** retry_count
                time.sleep(wait_time)
                return self._request(method, endpoint, retry_count + 1, **kwargs)
            logger.error(f"Supabase request failed: {e}")
            raise RepositoryError(f"Supabase unreachable: {e}") from e


class AsyncSupabaseRepository:
    """Runs blocking ``SupabaseClient`` calls off the event loop."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self.client = client or SupabaseClient()

    async def lookup_by_identifier(self, identifier: str) -> Optional[Member]:
        return await asyncio.to_thread(self.client.get_member, identifier)

    async def insert_attendance(self, member: Member) -> InsertOutcome:
        return await asyncio.to_thread(self.client.record_attendance, member)

    def close(self) -> None:
        self.client.session.close()
