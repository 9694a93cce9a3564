"""
Community post routes.
"""
import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from triplog.db.session import get_db
from triplog.models.post import Post
from triplog.schemas.post import PostResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["posts"])


@router.get("/posts")
async def list_posts(db: Session = Depends(get_db)):
    """Get all posts, newest first."""
    try:
        posts = db.query(Post).order_by(Post.created_at.desc(), Post.id.desc()).all()
    except Exception as e:
        logger.error(f"Failed to fetch posts: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch posts"}
        )

    return {
        "data": {
            "posts": [PostResponse.model_validate(p).model_dump(mode="json", by_alias=True) for p in posts]
        }
    }
