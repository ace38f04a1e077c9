from fastapi import APIRouter, Depends, status

from src.platform.logging.loguru_io import Logger
from src.service.catalog.app.command.create_showtime_use_case import CreateShowtimeUseCase
from src.service.catalog.app.command.delete_showtime_use_case import DeleteShowtimeUseCase
from src.service.catalog.app.query.get_showtime_seat_map_use_case import (
    GetShowtimeSeatMapUseCase,
)
from src.service.catalog.domain.entity.showtime_entity import Showtime
from src.service.catalog.driving_adapter.http_controller.schema.showtime_schema import (
    SeatMapResponse,
    SeatRowResponse,
    SeatStatusResponse,
    ShowtimeCreateRequest,
    ShowtimeDeleteResponse,
    ShowtimeResponse,
)
from src.service.shared_kernel.domain.entity.current_user import CurrentUser
from src.service.shared_kernel.driving_adapter.auth.role_auth import require_admin


router = APIRouter()


def _to_response(showtime: Showtime) -> ShowtimeResponse:
    assert showtime.id is not None
    return ShowtimeResponse(
        id=showtime.id,
        movie_id=showtime.movie_id,
        screen_id=showtime.screen_id,
        start_time=showtime.start_time,
        end_time=showtime.end_time,
        prices=showtime.prices,
        is_active=showtime.is_active,
        movie_title=showtime.movie_title,
        theater_name=showtime.theater_name,
    )


@router.get('/{showtime_id}/seats')
@Logger.io
async def get_showtime_seats(
    showtime_id: int,
    use_case: GetShowtimeSeatMapUseCase = Depends(GetShowtimeSeatMapUseCase.depends),
) -> SeatMapResponse:
    seat_map = await use_case.execute(showtime_id=showtime_id)
    return SeatMapResponse(
        showtime=_to_response(seat_map.showtime),
        available_count=seat_map.available_count,
        rows=[
            SeatRowResponse(
                row=row.row,
                seats=[
                    SeatStatusResponse(
                        seat_id=seat.seat_id,
                        label=seat.label,
                        number=seat.number,
                        tier=seat.tier,
                        price=seat.price,
                        status=seat.status.value,
                    )
                    for seat in row.seats
                ],
            )
            for row in seat_map.rows
        ],
    )


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_showtime(
    request: ShowtimeCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    use_case: CreateShowtimeUseCase = Depends(CreateShowtimeUseCase.depends),
) -> ShowtimeResponse:
    showtime = await use_case.execute(
        movie_id=request.movie_id,
        screen_id=request.screen_id,
        start_time=request.start_time,
        prices=request.prices,
    )
    return _to_response(showtime)


@router.delete('/{showtime_id}')
@Logger.io
async def delete_showtime(
    showtime_id: int,
    current_user: CurrentUser = Depends(require_admin),
    use_case: DeleteShowtimeUseCase = Depends(DeleteShowtimeUseCase.depends),
) -> ShowtimeDeleteResponse:
    deleted = await use_case.execute(showtime_id=showtime_id)
    return ShowtimeDeleteResponse(
        showtime_id=showtime_id,
        deleted=deleted,
        message=(
            'Showtime deleted'
            if deleted
            else 'Showtime has reservations and was deactivated instead'
        ),
    )
