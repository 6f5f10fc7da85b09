from fastapi import APIRouter

from app.api.v1.endpoints.health import router as health_router
from app.api.v1.endpoints.auth import router as auth_router
from app.api.v1.endpoints.dashboard import router as dashboard_router
from app.api.v1.endpoints.destinations import router as destinations_router
from app.api.v1.endpoints.forms import router as forms_router
from app.api.v1.endpoints.home import router as home_router
from app.api.v1.endpoints.opportunities import router as opportunities_router
from app.api.v1.endpoints import records, site_settings


router = APIRouter(prefix="/v1")
router.include_router(health_router, tags=["health"])
router.include_router(auth_router, tags=["auth"])
router.include_router(dashboard_router, tags=["dashboard"])

router.include_router(records.tours_router, tags=["tours"])
router.include_router(destinations_router, tags=["destinations"])
router.include_router(site_settings.opportunity_settings_router, tags=["opportunities"])
router.include_router(opportunities_router, tags=["opportunities"])
router.include_router(records.tour_types_router, tags=["tour-types"])
router.include_router(records.blog_router, tags=["blog"])

router.include_router(site_settings.hero_router, tags=["home"])
router.include_router(site_settings.logo_router, tags=["home"])
router.include_router(site_settings.map_router, tags=["home"])
router.include_router(site_settings.featured_router, tags=["home"])
router.include_router(home_router, tags=["home"])
router.include_router(records.services_router, tags=["home"])
router.include_router(records.partners_router, tags=["home"])
router.include_router(records.stats_router, tags=["home"])
router.include_router(records.map_locations_router, tags=["home"])

router.include_router(records.agencies_router, tags=["users"])
router.include_router(records.profiles_router, tags=["users"])

router.include_router(forms_router, tags=["forms"])
