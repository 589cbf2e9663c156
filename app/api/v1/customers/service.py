from typing import List, Optional

from app.api.v1.customers.schemas import CreateCustomerRequest, UpdateCustomerRequest
from app.core.exceptions import AppException
from app.models.customer import Customer
from app.storage.base import Storage


class CustomerService:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def get_all_customers(self, search: Optional[str] = None) -> List[Customer]:
        return await self.storage.get_all_customers(search=search)

    async def get_customer_by_id(self, customer_id: int) -> Customer:
        customer = await self.storage.get_customer(customer_id)
        if customer is None:
            AppException().raise_404(f"Customer with id {customer_id} not found")
        return customer

    async def create_customer(self, customer_data: CreateCustomerRequest) -> Customer:
        return await self.storage.create_customer(customer_data.model_dump())

    async def update_customer(self, customer_id: int, customer_data: UpdateCustomerRequest) -> Customer:
        customer = await self.storage.update_customer(customer_id, customer_data.model_dump(exclude_unset=True))
        if customer is None:
            AppException().raise_404(f"Customer with id {customer_id} not found")
        return customer

    async def delete_customer(self, customer_id: int) -> None:
        if not await self.storage.delete_customer(customer_id):
            AppException().raise_404(f"Customer with id {customer_id} not found")
