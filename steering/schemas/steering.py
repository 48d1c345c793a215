from pydantic import BaseModel, ConfigDict, Field, StrictInt
from typing import List


class ServiceLocationEntry(BaseModel):
    serviceLocationId: str = ""
    serviceLocationUri: str = ""


class ContentSteeringConfig(BaseModel):
    """
    Configuration payload accepted on the content_steering_config endpoint.

    Example:
        {
            "TTL": 100,
            "RELOAD_URI": "http://localhost:2210/dash.dcsm",
            "serviceLocations": [
                {"serviceLocationId": "baseurl_2", "serviceLocationUri": "https://cdn2.example.com/bbb/"},
                {"serviceLocationId": "baseurl_1", "serviceLocationUri": "https://cdn1.example.com/bbb/"}
            ]
        }
    """
    TTL: StrictInt = 0
    RELOAD_URI: str = ""
    serviceLocations: List[ServiceLocationEntry] = []


class SteeringManifest(BaseModel):
    """DASH Content Steering Manifest body (DASH-IF Content Steering, Table 6.3.1)"""
    model_config = ConfigDict(populate_by_name=True)

    VERSION: int
    TTL: int
    RELOAD_URI: str = Field(alias="RELOAD-URI")
    SERVICE_LOCATION_PRIORITY: List[str] = Field(alias="SERVICE-LOCATION-PRIORITY")
