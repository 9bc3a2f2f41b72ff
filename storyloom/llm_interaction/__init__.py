# storyloom/llm_interaction/__init__.py

"""
1) Adapter ---------- How to talk to the model
2) Prompt Builders -- How to assemble context
3) Prompt Texts ----- What instructions to give
4) Step Engine ------ How one LLM operation behaves
5) Step Registry ---- Which operations exist


adapter.py
"How we talk to LLMs"
Transport + normalization layer. CompletionClient is the one-method
interface (complete(messages, params) -> text); OpenAI and Ollama clients
implement it. LLMAdapter picks the sampling parameters for a stage, makes
exactly one call and turns vendor failures into UpstreamError /
CompletionTimeout. Nothing else in the package knows about a vendor SDK.


prompt_builders.py
"How we assemble context for LLMs"
PromptState carries normalized answers, tone and the clamped word limit.
Each builder returns the role-tagged message list for one stage.


prompt_texts.py
"What instructions we give to LLMs"
Coach persona, cliché denylist, the start prompt, the follow-up rules,
the static opening pool. StyleGuide lets the denylist be swapped by config.


step.py
"How one LLM operation behaves"
build messages -> call adapter -> parse -> apply empty-result policy
Parsers:
-parse_questions = list (max 3 trimmed lines)
-parse_followup = string (first line)
-parse_essay = string (trimmed)


registry.py
"Which steps exist"
{
  "questions": LLMStep(...),
  "followup": LLMStep(...),
  "essay": LLMStep(...),
}
"""
