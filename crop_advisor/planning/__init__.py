"""
Plan composition: turns engine output into adaptation strategies.

Modules
-------
prompt        : PlanInputs + build_prompt() — pure string rendering.
gemini_client : GeminiPlanClient — httpx call to the generative service;
                all failures surface as PlanServiceError.
composer      : PlanComposer.compose() + build_fallback_plan() — the
                templated plan replaces the service output on failure.
budget        : budget_breakdown() — investment split per category.
export        : export_plan_json() — file output.

Credential placement (.env, gitignored):
  GEMINI_API_KEY — plan service key (variable name set by planner.api_key_env)
"""
