"""
Cyphers 开放 API 端点表（https://api.neople.co.kr/cy）

图片资源不经过网关，直接访问：
    物品      https://img-api.neople.co.kr/cy/items/<itemId>
    角色      https://img-api.neople.co.kr/cy/characters/<characterId>
    位置特性  https://img-api.neople.co.kr/cy/position-attributes/<attributeId>
"""

from gateway.config.api_endpoint import APIEndpoint
from gateway.config.parameter_spec import ListStyle, ParamType, Range, path, query
from gateway.config.service_definition import ServiceDefinition

RANKING_TYPES = ("winCount", "winRate", "killCount", "assistCount", "exp")
TSJ_TYPES = ("melee", "ranged")
MAX_MULTI_ITEMS = 30


def _ranking_params(player_required: bool):
    return (
        query("playerId", required=player_required, description="定位到某玩家所在的排名"),
        query("offset", ParamType.INT, default=0),
        query("limit", ParamType.INT, default=10, range=Range(1, 1000)),
    )


def build_cyphers_api() -> ServiceDefinition:
    """构建 Cyphers 服务定义"""
    return ServiceDefinition.of(
        name="cyphers",
        category="game",
        description="Neople Cyphers open API",
        endpoints=[
            APIEndpoint(
                name="players",
                path="players",
                description="按昵称搜索玩家",
                parameters=(
                    query("nickname", required=True),
                    query("wordType", ParamType.ENUM, default="match", allowed=("match", "full")),
                    query("limit", ParamType.INT, default=10, range=Range(1, 200)),
                ),
            ),
            APIEndpoint(
                name="player",
                path="players/{playerId}",
                description="玩家基本信息",
                parameters=(path("playerId"),),
            ),
            APIEndpoint(
                name="player_matches",
                path="players/{playerId}/matches",
                description="玩家对局记录（最长 90 天，next 翻页沿用首次查询条件）",
                parameters=(
                    path("playerId"),
                    query("gameTypeId", ParamType.ENUM, default="rating", allowed=("rating", "normal")),
                    query("startDate", ParamType.DATE),
                    query("endDate", ParamType.DATE),
                    query("limit", ParamType.INT, default=10, range=Range(1, 100)),
                    query("next", description="分页游标"),
                ),
                date_range=("startDate", "endDate"),
            ),
            APIEndpoint(
                name="match",
                path="matches/{matchId}",
                description="对局详情",
                parameters=(path("matchId"),),
            ),
            APIEndpoint(
                name="rating_ranking",
                path="ranking/ratingpoint",
                description="积分排名",
                parameters=_ranking_params(player_required=True),
            ),
            APIEndpoint(
                name="character_ranking",
                path="ranking/characters/{characterId}/{rankingType}",
                description="角色排名",
                parameters=(
                    path("characterId"),
                    path("rankingType", allowed=RANKING_TYPES),
                ) + _ranking_params(player_required=False),
            ),
            APIEndpoint(
                name="tsj_ranking",
                path="ranking/tsj/{tsjType}",
                description="斗神战排名",
                parameters=(path("tsjType", allowed=TSJ_TYPES),) + _ranking_params(player_required=False),
            ),
            APIEndpoint(
                name="battleitems",
                path="battleitems",
                description="按名称搜索物品",
                parameters=(
                    query("limit", ParamType.INT, default=10, range=Range(1, 1000)),
                    query("itemName", required=True),
                    query("wordType", ParamType.ENUM, default="match", allowed=("match", "front", "full")),
                    query("q", ParamType.STRING_LIST, list_style=ListStyle.REPEAT,
                          description="附加筛选条件，如 characterId:<id>"),
                ),
            ),
            APIEndpoint(
                name="battleitem",
                path="battleitems/{itemId}",
                description="物品详情",
                parameters=(path("itemId"),),
            ),
            APIEndpoint(
                name="multi_battleitems",
                path="multi/battleitems",
                description=f"批量查询物品（逗号分隔，最多 {MAX_MULTI_ITEMS} 个）",
                parameters=(
                    query("itemIds", ParamType.STRING_LIST, required=True, max_items=MAX_MULTI_ITEMS,
                          list_style=ListStyle.COMMA),
                ),
            ),
            APIEndpoint(
                name="characters",
                path="characters",
                description="角色列表",
            ),
            APIEndpoint(
                name="position_attribute",
                path="position-attributes/{attributeId}",
                description="位置特性详情",
                parameters=(path("attributeId"),),
            ),
        ],
    )
