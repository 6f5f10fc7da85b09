from pydantic import BaseModel


class DashboardOut(BaseModel):
    tours: int
    regions: int
    popular_tours: int
    opportunity_tours: int
    blog_posts: int
    agencies: int
    tour_types: int
