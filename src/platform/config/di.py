"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.database.orm_db_setting import Database
from src.service.booking.app.service.booking_notifier import BookingNotifier
from src.service.booking.driven_adapter.notification.logging_notification_sink_impl import (
    LoggingNotificationSinkImpl,
)
from src.service.booking.driven_adapter.payment.mock_payment_gateway_impl import (
    MockPaymentGatewayImpl,
)
from src.service.shared_kernel.driving_adapter.auth.jwt_auth import JwtAuth


class Container(containers.DeclarativeContainer):
    # Database session factory for work outside a request (hold sweeper)
    database = providers.Singleton(Database)

    # Auth service
    jwt_auth = providers.Singleton(JwtAuth)

    # Notifications (best effort, after commit)
    notification_sink = providers.Singleton(LoggingNotificationSinkImpl)
    booking_notifier = providers.Singleton(
        BookingNotifier,
        notification_sink=notification_sink,
    )

    # Payment gateways, selected by Booking.payment_method
    credit_card_gateway = providers.Singleton(
        MockPaymentGatewayImpl,
        provider='Credit card',
        transaction_prefix='cc',
        required_field='card_number',
    )
    paypal_gateway = providers.Singleton(
        MockPaymentGatewayImpl,
        provider='PayPal',
        transaction_prefix='pp',
        required_field='paypal_email',
    )
    payment_gateways = providers.Dict(
        credit_card=credit_card_gateway,
        paypal=paypal_gateway,
    )


container = Container()
