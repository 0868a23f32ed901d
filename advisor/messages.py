"""Fixed user-facing replies (Korean locale)."""

ASK_FOR_LOCATION = "어느 지역의 날씨를 알려드릴까요?"
NO_ANSWER = "답변을 생성하지 못했어요."

POLLEN_UNAVAILABLE = (
    "죄송해요. 꽃가루 정보를 가져오는 데 실패했어요.\n"
    "잠시 후 다시 시도해주세요."
)
POLLEN_SUMMARY_FAILED = "죄송해요. 꽃가루 정보를 정리하는 데 실패했어요. 잠시 후 다시 시도해주세요."
AIR_QUALITY_UNAVAILABLE = "죄송해요. 미세먼지 정보를 가져오는 데 실패했어요. 잠시 후 다시 시도해주세요."
AIR_QUALITY_SUMMARY_FAILED = "죄송해요. 미세먼지 정보를 정리하는 데 실패했어요. 잠시 후 다시 시도해주세요."
WEATHER_UNAVAILABLE = "죄송해요. 날씨 정보를 불러오는 데 실패했어요. 잠시 후 다시 시도해주세요."


def location_not_found(place: str | None) -> str:
    """Apology naming the place that could not be geocoded."""
    if place:
        return f'죄송해요. "{place}" 지역의 위치를 찾을 수 없어요.'
    return "죄송해요. 현재 위치의 지역 정보를 찾을 수 없어요."
