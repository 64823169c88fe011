"""Time booking service - validation, overlap policy and worklog sync."""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from timetracker.exceptions import (
    InvalidInputError,
    NotFoundError,
    OverlapError,
    TicketSystemError,
    TicketSystemUnavailableError,
    WorklogSyncError,
)
from timetracker.models.project import BudgetType
from timetracker.models.time_booking import TimeBooking, TimeBookingCreate, TimeBookingUpdate
from timetracker.repositories.time_booking_repository import TimeBookingRepository
from timetracker.ticket_systems.base import TicketSystemClient
from timetracker.ticket_systems.factory import TicketSystemClientFactory
from timetracker.utils.billing import derive_hourly_rate, money_to_str
from timetracker.utils.ids import to_object_id
from timetracker.utils.timestamps import derive_duration_minutes, parse_timestamp

logger = logging.getLogger(__name__)

OVERLAP_MESSAGE = (
    "Time overlap: the period overlaps an existing booking "
    "(same project, same user)."
)
CLIENT_UNAVAILABLE_MESSAGE = (
    "An external ticket system is configured for this project, but no client "
    "is available for it. Please check the ticket system configuration."
)


class TimeBookingService:
    """Service for handling time booking operations.

    Every operation takes the acting ``user_id`` explicitly. With a user id
    the bookings are scoped to that user and overlaps are rejected; with
    ``None`` (system context) neither scoping nor the overlap check applies.
    """

    def __init__(
        self,
        db,
        client_factory: Optional[TicketSystemClientFactory] = None,
        bookings: Optional[TimeBookingRepository] = None,
    ):
        """Initialize service with database connection."""
        self.db = db
        self.projects = db["projects"]
        self.activities = db["activities"]
        self.ticket_systems = db["ticket_systems"]
        self.bookings = bookings if bookings is not None else TimeBookingRepository(db)
        self.client_factory = client_factory or TicketSystemClientFactory()

    def _doc_to_booking(self, doc: dict) -> TimeBooking:
        """Convert database document to TimeBooking model."""
        return TimeBooking(
            _id=str(doc["_id"]),
            project_id=doc["project_id"],
            activity_id=doc.get("activity_id"),
            started_at=doc["started_at"],
            ended_at=doc["ended_at"],
            ticket_number=doc["ticket_number"],
            duration_minutes=doc["duration_minutes"],
            worklog_id=doc.get("worklog_id"),
        )

    async def _get_project(self, project_id: str) -> dict:
        object_id = to_object_id(project_id)
        project = await self.projects.find_one({"_id": object_id}) if object_id else None
        if not project:
            raise NotFoundError("Project not found")
        return project

    async def _get_activity(self, activity_id: str) -> dict:
        object_id = to_object_id(activity_id)
        activity = await self.activities.find_one({"_id": object_id}) if object_id else None
        if not activity:
            raise NotFoundError("Activity not found")
        return activity

    async def _load_booking(self, user_id: Optional[str], booking_id: str) -> dict:
        if user_id is not None:
            booking = await self.bookings.find_one_by({"_id": booking_id, "user_id": user_id})
        else:
            booking = await self.bookings.find(booking_id)

        if not booking:
            raise NotFoundError("Time booking not found")
        return booking

    async def _resolve_client(self, project: Optional[dict]) -> Optional[TicketSystemClient]:
        """
        Resolve the ticket system client of a project.

        Returns:
            The client, or None if the project has no ticket system linked

        Raises:
            TicketSystemUnavailableError: If a ticket system is linked but no
                client can be built for it
        """
        if not project or not project.get("ticket_system_id"):
            return None

        object_id = to_object_id(project["ticket_system_id"])
        config = await self.ticket_systems.find_one({"_id": object_id}) if object_id else None
        client = self.client_factory.for_ticket_system(config)
        if client is None:
            logger.error(
                "Project %s links ticket system %s but no client could be built",
                project.get("_id"),
                project["ticket_system_id"],
            )
            raise TicketSystemUnavailableError(CLIENT_UNAVAILABLE_MESSAGE)
        return client

    async def _check_overlap(
        self,
        user_id: Optional[str],
        project_id: str,
        started_at: datetime,
        ended_at: datetime,
        exclude_id=None,
    ) -> None:
        if user_id is None:
            return
        if await self.bookings.exists_overlap(
            user_id, project_id, started_at, ended_at, exclude_id=exclude_id
        ):
            raise OverlapError(OVERLAP_MESSAGE)

    async def _discard_worklog(
        self,
        client: TicketSystemClient,
        ticket_number: str,
        worklog_id: str,
    ) -> None:
        """Best-effort removal of a worklog whose booking could not be stored."""
        try:
            deleted = await client.delete_worklog(ticket_number, worklog_id)
        except Exception:
            logger.exception(
                "Compensation failed: worklog %s on %s is orphaned", worklog_id, ticket_number
            )
            return

        if not deleted:
            logger.error(
                "Compensation failed: worklog %s on %s is orphaned", worklog_id, ticket_number
            )

    async def _forget_worklog(self, booking: dict) -> None:
        """Best-effort clearing of a worklog id whose worklog was already removed."""
        try:
            async with self.bookings.transaction() as session:
                await self.bookings.save(
                    {**booking, "worklog_id": None, "updated_at": datetime.now(timezone.utc)},
                    session=session,
                )
        except Exception:
            logger.exception(
                "Time booking %s still references removed worklog %s",
                booking["_id"],
                booking.get("worklog_id"),
            )

    async def _recalc_project_rate(self, project: Optional[dict]) -> None:
        """
        Re-derive the hourly rate of a fixed-price project from its booked minutes.

        The rate is a derived value, so failures are logged and swallowed.
        """
        if not project or project.get("budget_type") != BudgetType.FIXED_PRICE.value:
            return
        if project.get("budget") is None:
            return

        try:
            minutes = await self.bookings.sum_minutes_by_project(str(project["_id"]))
            rate = derive_hourly_rate(Decimal(str(project["budget"])), minutes)
            await self.projects.update_one(
                {"_id": project["_id"]},
                {"$set": {
                    "hourly_rate": money_to_str(rate),
                    "updated_at": datetime.now(timezone.utc),
                }},
            )
        except Exception:
            logger.exception("Recalculating hourly rate of project %s failed", project["_id"])

    async def list_bookings(self, user_id: Optional[str]) -> list[TimeBooking]:
        """
        List time bookings, newest first.

        Args:
            user_id: Acting user (None lists all bookings)

        Returns:
            List of time bookings
        """
        criteria = {"user_id": user_id} if user_id is not None else {}
        docs = await self.bookings.find_by(criteria)
        return [self._doc_to_booking(doc) for doc in docs]

    async def get_booking(self, user_id: Optional[str], booking_id: str) -> TimeBooking:
        """
        Get a time booking by ID.

        Raises:
            NotFoundError: If the booking does not exist for this user
        """
        return self._doc_to_booking(await self._load_booking(user_id, booking_id))

    async def create_booking(
        self,
        user_id: Optional[str],
        booking_create: TimeBookingCreate,
    ) -> TimeBooking:
        """
        Create a time booking, pushing a worklog to the project's ticket system.

        The external worklog is created first; if storing the booking then
        fails, the worklog is deleted again before the error propagates.

        Args:
            user_id: Acting user, owner of the new booking
            booking_create: Raw booking input

        Returns:
            Created time booking

        Raises:
            InvalidInputError: Missing fields, bad timestamps, empty ticket
            OverlapError: Period overlaps another booking of the user on the project
            NotFoundError: Project or activity does not exist
            TicketSystemUnavailableError: Ticket system linked but unusable
            WorklogSyncError: The external worklog could not be created
        """
        project_id = (booking_create.project_id or "").strip()
        ticket_number = (booking_create.ticket_number or "").strip()
        if (
            not project_id
            or not ticket_number
            or not booking_create.started_at
            or not booking_create.ended_at
        ):
            raise InvalidInputError(
                'Fields "projectId", "ticketNumber", "startedAt", "endedAt" are required'
            )

        project = await self._get_project(project_id)
        activity_id = None
        if booking_create.activity_id is not None:
            activity_id = str((await self._get_activity(booking_create.activity_id))["_id"])

        started_at = parse_timestamp(booking_create.started_at, "startedAt")
        ended_at = parse_timestamp(booking_create.ended_at, "endedAt")
        minutes = derive_duration_minutes(started_at, ended_at)

        project_id = str(project["_id"])
        await self._check_overlap(user_id, project_id, started_at, ended_at)

        now = datetime.now(timezone.utc)
        booking_doc = {
            "user_id": user_id,
            "project_id": project_id,
            "activity_id": activity_id,
            "started_at": started_at,
            "ended_at": ended_at,
            "ticket_number": ticket_number,
            "duration_minutes": minutes,
            "worklog_id": None,
            "created_at": now,
            "updated_at": now,
        }

        client = await self._resolve_client(project)
        if client is not None:
            await self._store_with_new_worklog(client, booking_doc)
        else:
            async with self.bookings.transaction() as session:
                await self.bookings.save(booking_doc, session=session)

        logger.info(
            "Created time booking %s (%s min on %s)",
            booking_doc["_id"],
            minutes,
            ticket_number,
        )
        await self._recalc_project_rate(project)

        return self._doc_to_booking(booking_doc)

    async def _store_with_new_worklog(self, client: TicketSystemClient, booking_doc: dict) -> None:
        """Create the external worklog, then store the booking; undo the worklog on failure."""
        ticket_number = booking_doc["ticket_number"]
        try:
            worklog_id = await client.create_worklog(
                ticket_number,
                booking_doc["started_at"],
                booking_doc["duration_minutes"],
            )
        except TicketSystemError as e:
            raise WorklogSyncError(str(e)) from e

        booking_doc["worklog_id"] = worklog_id
        try:
            async with self.bookings.transaction() as session:
                await self.bookings.save(booking_doc, session=session)
        except Exception:
            await self._discard_worklog(client, ticket_number, worklog_id)
            raise

    async def update_booking(
        self,
        user_id: Optional[str],
        booking_id: str,
        booking_update: TimeBookingUpdate,
    ) -> TimeBooking:
        """
        Update a time booking with partial data.

        If the ticket or project changes, the existing worklog is removed from
        the old ticket and a new one is created on the target; otherwise the
        existing worklog is updated in place. If the new worklog cannot be
        created after the old one was removed, the booking is kept unchanged
        except that its worklog id is cleared.

        Args:
            user_id: Acting user
            booking_id: Time booking ID
            booking_update: Fields to change (only those sent are applied)

        Returns:
            Updated time booking

        Raises:
            NotFoundError: Booking, project or activity does not exist
            InvalidInputError: Bad timestamps, empty ticket
            OverlapError: New period overlaps another booking
            TicketSystemUnavailableError: Ticket system linked but unusable
            WorklogSyncError: External worklog could not be moved or written
        """
        existing = await self._load_booking(user_id, booking_id)
        fields = booking_update.model_fields_set

        old_project_id = existing["project_id"]
        old_ticket = existing["ticket_number"]
        old_project = await self.projects.find_one({"_id": to_object_id(old_project_id)})

        new_project = old_project
        if "project_id" in fields:
            if not booking_update.project_id:
                raise InvalidInputError("projectId must not be empty")
            new_project = await self._get_project(booking_update.project_id)
        if new_project is None:
            raise NotFoundError("Project not found")
        new_project_id = str(new_project["_id"])

        new_activity_id = existing.get("activity_id")
        if "activity_id" in fields:
            new_activity_id = None
            if booking_update.activity_id is not None:
                activity = await self._get_activity(booking_update.activity_id)
                new_activity_id = str(activity["_id"])

        new_started = existing["started_at"]
        if "started_at" in fields:
            new_started = parse_timestamp(booking_update.started_at or "", "startedAt")
        new_ended = existing["ended_at"]
        if "ended_at" in fields:
            new_ended = parse_timestamp(booking_update.ended_at or "", "endedAt")
        new_minutes = derive_duration_minutes(new_started, new_ended)

        new_ticket = old_ticket
        if "ticket_number" in fields:
            new_ticket = (booking_update.ticket_number or "").strip()
            if not new_ticket:
                raise InvalidInputError("ticketNumber must not be empty")

        await self._check_overlap(
            user_id, new_project_id, new_started, new_ended, exclude_id=existing["_id"]
        )

        ticket_or_project_changed = new_ticket != old_ticket or new_project_id != old_project_id
        new_client = await self._resolve_client(new_project)

        worklog_id = existing.get("worklog_id")
        removed_old_worklog = False
        if ticket_or_project_changed and worklog_id:
            # A worklog cannot be moved between tickets: remove it from the old one
            old_client = await self._resolve_client(old_project)
            if old_client is not None:
                try:
                    deleted = await old_client.delete_worklog(old_ticket, worklog_id)
                except TicketSystemError:
                    deleted = False
                if not deleted:
                    raise WorklogSyncError(
                        "External worklog could not be removed from the original ticket."
                    )
            worklog_id = None
            removed_old_worklog = True

        created_worklog_id = None
        if new_client is not None:
            try:
                if worklog_id:
                    await new_client.update_worklog(new_ticket, worklog_id, new_started, new_minutes)
                else:
                    created_worklog_id = await new_client.create_worklog(
                        new_ticket, new_started, new_minutes
                    )
                    worklog_id = created_worklog_id
            except TicketSystemError as e:
                if removed_old_worklog:
                    await self._forget_worklog(existing)
                raise WorklogSyncError(str(e)) from e

        booking_doc = {
            **existing,
            "project_id": new_project_id,
            "activity_id": new_activity_id,
            "started_at": new_started,
            "ended_at": new_ended,
            "ticket_number": new_ticket,
            "duration_minutes": new_minutes,
            "worklog_id": worklog_id,
            "updated_at": datetime.now(timezone.utc),
        }
        try:
            async with self.bookings.transaction() as session:
                stored = await self.bookings.save(booking_doc, session=session)
        except Exception:
            if created_worklog_id:
                await self._discard_worklog(new_client, new_ticket, created_worklog_id)
            raise

        await self._recalc_project_rate(old_project)
        if new_project_id != old_project_id:
            await self._recalc_project_rate(new_project)

        return self._doc_to_booking(stored)

    async def delete_booking(self, user_id: Optional[str], booking_id: str) -> dict:
        """
        Delete a time booking, removing its external worklog first.

        Without a stored worklog id the worklog is looked up by its start time
        and duration. If the external deletion fails, the booking is kept.

        Args:
            user_id: Acting user
            booking_id: Time booking ID

        Returns:
            Dictionary with deleted_count

        Raises:
            NotFoundError: If the booking does not exist
            TicketSystemUnavailableError: Ticket system linked but unusable
            WorklogSyncError: External worklog could not be deleted
        """
        existing = await self._load_booking(user_id, booking_id)
        project = await self.projects.find_one({"_id": to_object_id(existing["project_id"])})

        client = await self._resolve_client(project)
        if client is not None:
            ticket_number = existing["ticket_number"]
            worklog_id = existing.get("worklog_id")
            try:
                if worklog_id:
                    deleted = await client.delete_worklog(ticket_number, str(worklog_id))
                else:
                    deleted = await client.delete_worklog_by_signature(
                        ticket_number,
                        existing["started_at"],
                        existing["duration_minutes"],
                    )
            except TicketSystemError:
                deleted = False
            if not deleted:
                raise WorklogSyncError(
                    "External worklog could not be deleted. Please try again later."
                )

        async with self.bookings.transaction() as session:
            deleted_count = await self.bookings.remove(existing["_id"], session=session)

        logger.info("Deleted time booking %s", existing["_id"])
        await self._recalc_project_rate(project)

        return {"deleted_count": deleted_count}
