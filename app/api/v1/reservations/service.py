from app.api.v1.reservations.schemas import CreateReservationRequest, UpdateReservationRequest
from app.core.exceptions import AppException
from app.models.reservation import Reservation
from app.models.user import User
from app.storage.base import Storage


class ReservationService:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def get_reservation_by_id(self, reservation_id: int) -> Reservation:
        reservation = await self.storage.get_reservation(reservation_id)
        if reservation is None:
            AppException().raise_404(f"Reservation with id {reservation_id} not found")
        return reservation

    async def create_reservation(self, data: CreateReservationRequest, current_user: User) -> Reservation:
        payload = data.model_dump(exclude_none=True)
        payload.setdefault("end_date", None)
        if data.customer_id is not None and await self.storage.get_customer(data.customer_id) is None:
            AppException().raise_404(f"Customer with id {data.customer_id} not found")
        payload["created_by"] = current_user.username
        payload["updated_by"] = current_user.username
        return await self.storage.create_reservation(payload)

    async def update_reservation(
        self, reservation_id: int, data: UpdateReservationRequest, current_user: User
    ) -> Reservation:
        # exclude_unset keeps an explicit "end_date": null (reopen the rental) distinct from "not sent"
        payload = data.model_dump(exclude_unset=True)
        if payload.get("customer_id") is not None and await self.storage.get_customer(payload["customer_id"]) is None:
            AppException().raise_404(f"Customer with id {payload['customer_id']} not found")
        payload["updated_by"] = current_user.username
        return await self.storage.update_reservation(reservation_id, payload)

    async def delete_reservation(self, reservation_id: int) -> None:
        if not await self.storage.delete_reservation(reservation_id):
            AppException().raise_404(f"Reservation with id {reservation_id} not found")
