"""Tests for compiling a workflow document into the engine prompt format."""

from nodeflow.workflow.prompt_compiler import PromptCompiler
from nodeflow.workflow.workflow_model import WorkflowDocument


def test_compile_sample_workflow(workflow_document):
    prompt = PromptCompiler(workflow_document).compile()

    assert set(prompt) == {"1", "2", "3", "4", "5"}
    assert prompt["1"] == {
        "class_type": "CheckpointLoaderSimple",
        "inputs": {"ckpt_name": "model.safetensors"},
        "_meta": {"title": "CheckpointLoaderSimple"},
    }
    assert prompt["2"]["inputs"] == {"clip": ["1", 1], "text": "a photo of a cat"}
    assert prompt["2"]["_meta"] == {"title": "Positive"}
    assert prompt["4"]["inputs"] == {
        "model": ["1", 0],
        "positive": ["2", 0],
        "negative": ["3", 0],
        "seed": 42,
        "steps": 20,
    }
    assert prompt["5"]["inputs"] == {"samples": ["4", 0], "vae": ["1", 2]}


def test_linked_widget_input_consumes_its_value_slot(workflow_data):
    """Test that a widget input fed by a link still advances the widget position."""
    workflow_data["nodes"][3]["inputs"][3]["link"] = 4
    doc = WorkflowDocument.parse(workflow_data)

    inputs = PromptCompiler(doc).compile()["4"]["inputs"]

    assert inputs["seed"] == ["2", 0]
    assert inputs["steps"] == 20


def test_muted_and_bypassed_nodes_are_omitted(workflow_data):
    workflow_data["nodes"][2]["mode"] = 2
    workflow_data["nodes"][4]["mode"] = 4
    doc = WorkflowDocument.parse(workflow_data)

    prompt = PromptCompiler(doc).compile()

    assert set(prompt) == {"1", "2", "4"}
    assert "negative" not in prompt["4"]["inputs"]


def test_bypassed_node_passes_matching_input_through(workflow_data):
    """Test that a bypassed node is skipped over to the node feeding it."""
    workflow_data["nodes"].append({
        "id": 6,
        "type": "LatentUpscale",
        "mode": 4,
        "inputs": [{"name": "samples", "type": "LATENT", "link": 7}],
        "outputs": [{"name": "LATENT", "type": "LATENT", "links": [8]}],
        "widgets_values": [],
    })
    workflow_data["links"][6] = [7, 4, 0, 6, 0, "LATENT"]
    workflow_data["links"].append([8, 6, 0, 5, 0, "LATENT"])
    workflow_data["nodes"][4]["inputs"][0]["link"] = 8
    doc = WorkflowDocument.parse(workflow_data)

    prompt = PromptCompiler(doc).compile()

    assert "6" not in prompt
    assert prompt["5"]["inputs"]["samples"] == ["4", 0]


def test_bypassed_node_without_matching_input_drops_reference(workflow_data):
    workflow_data["nodes"][1]["mode"] = 4
    doc = WorkflowDocument.parse(workflow_data)

    prompt = PromptCompiler(doc).compile()

    assert "2" not in prompt
    assert "positive" not in prompt["4"]["inputs"]


def test_unknown_link_falls_back_to_widget_value(workflow_data):
    workflow_data["nodes"][1]["inputs"][1]["link"] = 99
    doc = WorkflowDocument.parse(workflow_data)

    prompt = PromptCompiler(doc).compile()

    assert prompt["2"]["inputs"]["text"] == "a photo of a cat"


def test_build_submission(workflow_document):
    compiler = PromptCompiler(workflow_document)

    payload = compiler.build_submission("client-123")

    assert payload["client_id"] == "client-123"
    assert payload["prompt"] == compiler.prompt
    assert payload["extra_data"]["extra_pnginfo"]["workflow"] == workflow_document.to_dict()
