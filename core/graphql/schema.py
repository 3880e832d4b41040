import strawberry
from apps.evaluation.graphql.queries import EvaluationQueries

@strawberry.type
class Query(EvaluationQueries):
    pass

schema = strawberry.Schema(query=Query)
