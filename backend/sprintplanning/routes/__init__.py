# Routes package init
"""
Sprint Planning Backend — API Routes Package
==============================================

Route Inventory:
    - sprint_plans.py:  POST /api/createSprintPlanTeamMember
                        POST /api/createSprintPlan
                        GET  /api/getSprintPlanningData/{employer}/{team}/{sprintId}
    - hub.py:           GET|POST /api/negotiate
                        POST /client/negotiate, WS /client/
    - health.py:        GET  /health

Routes stay thin: extract request data, call a service, shape the response.
"""
