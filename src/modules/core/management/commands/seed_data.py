from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from shared.domain.lifecycle import Actor, OrderStatus

DEMO_USERS = [
    # username, password, is_staff
    ("admin", "admin123", True),
    ("customer", "customer123", False),
    ("alex", "alex123", False),
    ("deliverer", "deliverer123", False),
    ("sam", "sam123", False),
]

MENUS = {
    ("rand-dining", "Rand Dining Center"): [
        ("Grilled Chicken Bowl", Decimal("9.49")),
        ("Veggie Wrap", Decimal("7.25")),
        ("Sweet Potato Fries", Decimal("3.50")),
    ],
    ("commons", "The Commons"): [
        ("Medium Pepperoni Pizza", Decimal("10.99")),
        ("Caesar Salad", Decimal("6.75")),
        ("Garlic Knots", Decimal("4.25")),
    ],
    ("local-java", "Local Java"): [
        ("Iced Latte", Decimal("4.95")),
        ("Blueberry Muffin", Decimal("3.25")),
    ],
}

ADDRESSES = [
    "Branscomb Quad, Room 214",
    "Commons Center Lobby",
    "Kissam Hall, Room 118",
    "Featheringill Hall Entrance",
]


class Command(BaseCommand):
    help = "Seed database with demo users and orders across the delivery lifecycle."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        orders_created = self._seed_orders()

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: users={users_created}, orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        for username, password, is_staff in DEMO_USERS:
            if User.objects.filter(username=username).exists():
                continue
            if username == "admin":
                User.objects.create_superuser(username, password=password)
            else:
                User.objects.create_user(username, password=password, is_staff=is_staff)
            created += 1
        return created

    def _seed_orders(self) -> int:
        self.stdout.write("Creating orders...")
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        service = OrderService(order_repository=OrderDjangoRepository())
        customers = [Actor(uid="customer"), Actor(uid="alex")]
        deliverers = [Actor(uid="deliverer"), Actor(uid="sam")]

        # Final status of each seeded order; the lifecycle is replayed up to it.
        plan = [
            OrderStatus.PENDING,
            OrderStatus.PENDING,
            OrderStatus.PENDING,
            OrderStatus.ACCEPTED,
            OrderStatus.PICKED_UP,
            OrderStatus.DELIVERED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        ]

        for index, target in enumerate(plan):
            customer = customers[index % len(customers)]
            deliverer = deliverers[index % len(deliverers)]
            (restaurant_id, restaurant_name), menu = random.choice(list(MENUS.items()))
            lines = random.sample(menu, k=random.randint(1, len(menu)))

            order, _ = service.place_order(
                CreateOrderDTO(
                    customer_id=customer.uid,
                    restaurant_id=restaurant_id,
                    restaurant_name=restaurant_name,
                    items=[
                        CreateOrderItemDTO(
                            name=name, price=price, quantity=random.randint(1, 2)
                        )
                        for name, price in lines
                    ],
                    delivery_address=random.choice(ADDRESSES),
                    notes=f"Seed order {index + 1}",
                )
            )
            order_id = str(order.id)

            if target == OrderStatus.CANCELLED:
                service.cancel(order_id, customer)
                continue
            if target == OrderStatus.PENDING:
                continue
            service.claim(order_id, deliverer)
            if target in {OrderStatus.PICKED_UP, OrderStatus.DELIVERED}:
                service.advance(order_id, deliverer, OrderStatus.PICKED_UP)
            if target == OrderStatus.DELIVERED:
                service.advance(order_id, deliverer, OrderStatus.DELIVERED)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return len(plan)
