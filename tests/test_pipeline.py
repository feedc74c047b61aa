"""
Tests for the correction pipeline.

Verifies command handling, formatting paths, the AI transform step and
create_pipeline wiring.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from devdictate.core.settings import Settings
from devdictate.core.transcript_processor.llm_processor import LLMTransformer, TransformerError
from devdictate.core.transcript_processor.pipeline import (
    CorrectionPipeline,
    CorrectionResult,
    create_pipeline,
    post_process,
)
from devdictate.core.transcript_processor.symbol_rules import SymbolRuleTable
from devdictate.core.transcript_processor.vocabulary_processor import (
    default_dictionary_entries,
)


def run(pipeline, text):
    return asyncio.run(pipeline.process(text))


class TestCorrectionResult:

    def test_was_corrected(self):
        assert CorrectionResult(text="a", original_text="b").was_corrected is True
        assert CorrectionResult(text="a", original_text="a").was_corrected is False


class TestPostProcess:

    def test_collapses_split_hashes(self):
        assert post_process("# # # title") == "### title"

    def test_collapses_split_dashes(self):
        assert post_process("git push - - force") == "git push -- force"

    def test_trims_and_collapses_spaces(self):
        assert post_process("  a   b  ") == "a b"


class TestCommands:

    def test_blank_input_unchanged(self, session_state):
        result = run(CorrectionPipeline(session_state), "   ")
        assert result.text == "   "
        assert result.was_corrected is False

    def test_markdown_command_only(self, session_state):
        result = run(CorrectionPipeline(session_state), "markdown")
        assert result.text == ""
        assert session_state.get_markdown_mode_enabled() is True

    def test_markdown_command_with_content(self, session_state):
        result = run(CorrectionPipeline(session_state), "markdown hash hello world")
        assert result.text == "# hello world"
        assert result.original_text == "markdown hash hello world"
        assert result.was_corrected is True
        assert session_state.get_markdown_mode_enabled() is True

    def test_plain_command_disables_markdown(self, session_state):
        session_state.set_markdown_mode_enabled(True)
        result = run(CorrectionPipeline(session_state), "plain text")
        assert result.text == ""
        assert session_state.get_markdown_mode_enabled() is False

    def test_prompt_command_only(self, session_state):
        result = run(CorrectionPipeline(session_state), "translate prompt")
        assert result.text == ""
        assert session_state.get_active_prompt().name == "translate"

    def test_prompt_off_command(self, session_state):
        session_state.activate_prompt_by_name("fix")
        result = run(CorrectionPipeline(session_state), "prompt off")
        assert result.text == ""
        assert session_state.get_active_prompt() is None

    def test_disabled_prompt_not_activated(self, session_state):
        fix = session_state.find_prompt_by_name("fix")
        session_state.toggle_enabled(fix)
        result = run(CorrectionPipeline(session_state), "fix prompt")
        assert result.text == "fix prompt"
        assert session_state.get_active_prompt() is None


class TestFormatting:

    def test_plain_mode_minimal_cleanup(self, session_state):
        result = run(CorrectionPipeline(session_state), "hello,  world")
        assert result.text == "hello world"

    def test_symbol_rules_applied_outside_markdown(self, session_state):
        pipeline = CorrectionPipeline(session_state, symbol_table=SymbolRuleTable())
        assert run(pipeline, "git commit dash m fix").text == "git commit -m fix"

    def test_symbol_rules_skipped_in_markdown_mode(self, session_state):
        session_state.set_markdown_mode_enabled(True)
        pipeline = CorrectionPipeline(session_state, symbol_table=SymbolRuleTable())
        assert run(pipeline, "bullet a arrow b").text == "- a arrow b"

    def test_dictionary_entries_remove_fillers(self, session_state):
        pipeline = CorrectionPipeline(
            session_state, dictionary_entries=default_dictionary_entries()
        )
        assert run(pipeline, "um so uh this works").text == "so this works"

    def test_vocabulary_replacements_applied(self, session_state):
        pipeline = CorrectionPipeline(
            session_state, vocabulary_replacements=[("post gress", "Postgres")]
        )
        assert run(pipeline, "connect to post gress").text == "connect to Postgres"

    def test_vocabulary_runs_after_dictionary(self, session_state):
        pipeline = CorrectionPipeline(
            session_state,
            dictionary_entries=default_dictionary_entries(),
            vocabulary_replacements=[("so this", "this")],
        )
        assert run(pipeline, "um so uh this works").text == "this works"

    def test_spoken_comma_left_as_word(self, session_state):
        pipeline = CorrectionPipeline(session_state, symbol_table=SymbolRuleTable())
        once = run(pipeline, "foo comma bar").text
        assert once == "foo comma bar"
        assert run(pipeline, once).text == once

    def test_no_prompt_name_without_active_prompt(self, session_state):
        assert run(CorrectionPipeline(session_state), "hello").prompt_name is None


class TestTransform:

    def test_prompt_command_with_content(self, session_state, make_transformer):
        transformer = make_transformer()
        pipeline = CorrectionPipeline(session_state, transformer=transformer)

        result = run(pipeline, "translate prompt bonjour")

        assert result.text == "BONJOUR"
        assert result.prompt_name == "translate"
        assert transformer.calls[0][0] == "bonjour"
        assert "{input}" in transformer.calls[0][1]

    def test_active_prompt_persists_across_calls(self, session_state, make_transformer):
        pipeline = CorrectionPipeline(session_state, transformer=make_transformer())
        run(pipeline, "fix prompt")
        assert run(pipeline, "hello there").text == "HELLO THERE"

    def test_output_is_sanitized(self, session_state, make_transformer):
        transformer = make_transformer(func=lambda t: f"Sure, here's the result: {t[::-1]}")
        session_state.activate_prompt_by_name("fix")
        pipeline = CorrectionPipeline(session_state, transformer=transformer)
        assert run(pipeline, "abc def").text == "fed cba"

    def test_transformer_error_keeps_pre_ai_text(self, session_state, make_transformer):
        transformer = make_transformer(error=TransformerError("boom"))
        session_state.activate_prompt_by_name("fix")
        pipeline = CorrectionPipeline(session_state, transformer=transformer)

        result = run(pipeline, "hello,  world")

        assert result.text == "hello world"
        assert result.prompt_name == "fix"

    def test_unexpected_error_keeps_pre_ai_text(self, session_state, make_transformer):
        transformer = make_transformer(error=RuntimeError("boom"))
        session_state.activate_prompt_by_name("fix")
        pipeline = CorrectionPipeline(session_state, transformer=transformer)
        assert run(pipeline, "hello").text == "hello"

    def test_unavailable_transformer_skipped(self, session_state, make_transformer):
        transformer = make_transformer(available=False)
        session_state.activate_prompt_by_name("fix")
        pipeline = CorrectionPipeline(session_state, transformer=transformer)

        assert run(pipeline, "hello").text == "hello"
        assert transformer.calls == []

    def test_no_transformer(self, session_state):
        session_state.activate_prompt_by_name("fix")
        assert run(CorrectionPipeline(session_state), "hello").text == "hello"

    def test_no_active_prompt_skips_transform(self, session_state, make_transformer):
        transformer = make_transformer()
        pipeline = CorrectionPipeline(session_state, transformer=transformer)
        assert run(pipeline, "hello").text == "hello"
        assert transformer.calls == []

    def test_empty_model_output_falls_back(self, session_state, make_transformer):
        transformer = make_transformer(func=lambda t: "<end_of_turn>")
        session_state.activate_prompt_by_name("fix")
        pipeline = CorrectionPipeline(session_state, transformer=transformer)
        assert run(pipeline, "hello world").text == "hello world"

    def test_cancellation_propagates(self, session_state):
        class SlowTransformer:
            async def is_available(self):
                return True

            async def transform(self, text, prompt_template):
                await asyncio.sleep(10)
                return text

        session_state.activate_prompt_by_name("fix")
        pipeline = CorrectionPipeline(session_state, transformer=SlowTransformer())

        async def main():
            task = asyncio.create_task(pipeline.process("hello"))
            await asyncio.sleep(0.01)
            task.cancel()
            await task

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(main())


class TestCreatePipeline:

    def test_defaults(self):
        settings = Settings.with_defaults()
        pipeline = create_pipeline(settings, autosave=False)
        assert run(pipeline, "um open paren close paren").text == "( )"

    def test_symbol_rules_disabled(self):
        settings = Settings.with_defaults()
        settings.symbol_rules_enabled = False
        pipeline = create_pipeline(settings, autosave=False)
        assert run(pipeline, "open paren").text == "open paren"

    def test_custom_rules_appended(self):
        settings = Settings.with_defaults()
        settings.custom_rules = [
            {"pattern": "kube", "replacement": "kubectl"},
            {"not": "a rule"},
        ]
        pipeline = create_pipeline(settings, autosave=False)
        assert run(pipeline, "kube get pods").text == "kubectl get pods"

    def test_uses_given_transformer(self, make_transformer):
        transformer = make_transformer()
        pipeline = create_pipeline(Settings.with_defaults(), transformer, autosave=False)
        assert pipeline.transformer is transformer

    def test_no_llm_configured(self):
        pipeline = create_pipeline(Settings.with_defaults(), autosave=False)
        assert pipeline.transformer is None

    def test_builds_llm_transformer(self):
        settings = Settings.with_defaults()
        settings.llm_provider = "ollama"
        settings.llm_model = "llama3"

        pipeline = create_pipeline(settings, autosave=False)

        assert isinstance(pipeline.transformer, LLMTransformer)
        assert pipeline.transformer.model == "ollama/llama3"
        assert pipeline.transformer.api_base == "http://localhost:11434"

    def test_persists_mode_change(self, isolated_config_dir):
        settings = Settings.with_defaults()
        pipeline = create_pipeline(settings)

        run(pipeline, "markdown")

        assert (isolated_config_dir / "settings.json").exists()
        assert Settings.load().markdown_mode_enabled is True

    @patch("devdictate.core.transcript_processor.llm_processor.acompletion", new_callable=AsyncMock)
    def test_llm_failure_keeps_text(self, mock_acompletion):
        mock_acompletion.side_effect = Exception("network down")
        settings = Settings.with_defaults()
        settings.llm_model = "gpt-4o-mini"
        settings.llm_api_key = "test-key"
        pipeline = create_pipeline(settings, autosave=False)

        result = run(pipeline, "fix prompt hello there")

        assert result.text == "hello there"
        mock_acompletion.assert_awaited_once()

    def test_vocabulary_replacements_from_settings(self):
        settings = Settings.with_defaults()
        settings.vocabulary_replacements = [("post gress", "Postgres")]
        pipeline = create_pipeline(settings, autosave=False)
        assert run(pipeline, "um start post gress").text == "start Postgres"


class TestIdempotence:
    """Running the pipeline over its own output changes nothing."""

    @pytest.mark.parametrize(
        "text",
        [
            "git commit dash m fix",
            "hash hash hash title",
            "open paren close paren",
            "foo comma bar",
            "call the api with json",
            "edit config dot json",
            "x fat arrow y",
            "git commit -m fix",
            "### title",
            "**important** info",
            "( )",
        ],
    )
    def test_plain_mode(self, text):
        pipeline = create_pipeline(Settings.with_defaults(), autosave=False)
        once = run(pipeline, text).text
        assert run(pipeline, once).text == once

    @pytest.mark.parametrize(
        "text",
        [
            "bold on important bold off info",
            "h2 section title",
            "bullet item one",
            "hash hello world",
            "first new line second",
            "git commit -m fix",
            "### title",
            "**important** info",
            "( )",
        ],
    )
    def test_markdown_mode(self, text):
        settings = Settings.with_defaults()
        settings.markdown_mode_enabled = True
        pipeline = create_pipeline(settings, autosave=False)
        once = run(pipeline, text).text
        assert run(pipeline, once).text == once
