import requests
import os
from typing import Dict
from fastapi import HTTPException
from cinesocial.schemas.movie import OMDBMovieData
from cinesocial.utils.cache import cache
import logging

logger = logging.getLogger(__name__)


# OMDb Service to look up movie metadata by IMDb ID
class OMDBService:
    BASE_URL = "https://www.omdbapi.com/"
    API_KEY = os.getenv("OMDB_API_KEY")

    @classmethod
    def _make_request(cls, params: Dict) -> Dict:
        """
        Make HTTP request to the OMDb API.

        Args:
            params: Query parameters

        Returns:
            JSON response from OMDb

        Raises:
            HTTPException: If API key is missing, the movie is unknown or the request fails
        """
        if not cls.API_KEY:
            raise HTTPException(status_code=500, detail="OMDb API key not configured")
        params = dict(params, apikey=cls.API_KEY)

        try:
            response = requests.get(cls.BASE_URL, params=params, timeout=10)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"OMDb API error for {params.get('i')}: {str(e)}")
            raise HTTPException(status_code=502, detail=f"OMDb API error: {str(e)}")

        # OMDb answers 200 with Response=False for unknown titles
        if payload.get("Response") == "False":
            raise HTTPException(status_code=404, detail=payload.get("Error", "Movie not found"))

        logger.debug(f"OMDb API request successful: {params.get('i')}")
        return payload

    @classmethod
    @cache(ttl=600)  # Cache movie details for 10 minutes
    def get_movie(cls, imdb_id: str) -> OMDBMovieData:
        """Full plot details for one title"""
        payload = cls._make_request({"i": imdb_id, "plot": "full"})
        return OMDBMovieData.model_validate(payload)
