from fastapi import APIRouter, Depends

from app.core.clients import get_backend
from app.schemas.dashboard import DashboardOut
from app.services.auth import require_session
from app.services.backend import BackendClient, BackendError
from app.services.entities import AGENCIES, BLOG_POSTS, TOUR_TYPES, TOURS
from app.services.errors import OperationFailed

router = APIRouter(dependencies=[Depends(require_session)])


@router.get("/dashboard", response_model=DashboardOut)
async def dashboard(client: BackendClient = Depends(get_backend)) -> DashboardOut:
    try:
        tours = await client.query(TOURS.table, select="id,region,popular_tour,opportunity_tour")
        blog_posts = await client.query(BLOG_POSTS.table, select="id")
        agencies = await client.query(AGENCIES.table, select="id")
        tour_types = await client.query(TOUR_TYPES.table, select="id")
    except BackendError as e:
        raise OperationFailed("Özet bilgiler yüklenirken bir hata oluştu") from e

    return DashboardOut(
        tours=len(tours),
        regions=len({t["region"] for t in tours if t.get("region")}),
        popular_tours=sum(1 for t in tours if t.get("popular_tour")),
        opportunity_tours=sum(1 for t in tours if t.get("opportunity_tour")),
        blog_posts=len(blog_posts),
        agencies=len(agencies),
        tour_types=len(tour_types),
    )
