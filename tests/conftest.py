"""Shared fixtures: a small text-to-image workflow document."""

import copy

import pytest

from nodeflow.config import ComfyConfig
from nodeflow.workflow.workflow_model import WorkflowDocument


def _widget(name):
    return {"name": name}


SAMPLE_WORKFLOW = {
    "id": "wf-sample",
    "revision": 3,
    "last_node_id": 5,
    "last_link_id": 7,
    "nodes": [
        {
            "id": 1,
            "type": "CheckpointLoaderSimple",
            "pos": [0, 0],
            "size": [315, 98],
            "flags": {},
            "order": 0,
            "mode": 0,
            "inputs": [
                {"name": "ckpt_name", "type": "COMBO", "link": None, "widget": _widget("ckpt_name")},
            ],
            "outputs": [
                {"name": "MODEL", "type": "MODEL", "links": [1]},
                {"name": "CLIP", "type": "CLIP", "links": [2, 3]},
                {"name": "VAE", "type": "VAE", "links": [5]},
            ],
            "properties": {"Node name for S&R": "CheckpointLoaderSimple"},
            "widgets_values": ["model.safetensors"],
        },
        {
            "id": 2,
            "type": "CLIPTextEncode",
            "title": "Positive",
            "pos": [400, 0],
            "size": [400, 200],
            "flags": {},
            "order": 1,
            "mode": 0,
            "inputs": [
                {"name": "clip", "type": "CLIP", "link": 2},
                {"name": "text", "type": "STRING", "link": None, "widget": _widget("text")},
            ],
            "outputs": [{"name": "CONDITIONING", "type": "CONDITIONING", "links": [4]}],
            "properties": {},
            "widgets_values": ["a photo of a cat"],
        },
        {
            "id": 3,
            "type": "CLIPTextEncode",
            "title": "Negative",
            "pos": [400, 250],
            "size": [400, 200],
            "flags": {},
            "order": 2,
            "mode": 0,
            "inputs": [
                {"name": "clip", "type": "CLIP", "link": 3},
                {"name": "text", "type": "STRING", "link": None, "widget": _widget("text")},
            ],
            "outputs": [{"name": "CONDITIONING", "type": "CONDITIONING", "links": [6]}],
            "properties": {},
            "widgets_values": ["blurry"],
        },
        {
            "id": 4,
            "type": "KSampler",
            "pos": [850, 0],
            "size": [315, 262],
            "flags": {},
            "order": 3,
            "mode": 0,
            "inputs": [
                {"name": "model", "type": "MODEL", "link": 1},
                {"name": "positive", "type": "CONDITIONING", "link": 4},
                {"name": "negative", "type": "CONDITIONING", "link": 6},
                {"name": "seed", "type": "INT", "link": None, "widget": _widget("seed")},
                {"name": "steps", "type": "INT", "link": None, "widget": _widget("steps")},
            ],
            "outputs": [{"name": "LATENT", "type": "LATENT", "links": [7]}],
            "properties": {},
            "widgets_values": [42, 20],
        },
        {
            "id": 5,
            "type": "VAEDecode",
            "pos": [1200, 0],
            "size": [210, 46],
            "flags": {},
            "order": 4,
            "mode": 0,
            "inputs": [
                {"name": "samples", "type": "LATENT", "link": 7},
                {"name": "vae", "type": "VAE", "link": 5},
            ],
            "outputs": [{"name": "IMAGE", "type": "IMAGE", "links": []}],
            "properties": {},
            "widgets_values": [],
        },
    ],
    "links": [
        [1, 1, 0, 4, 0, "MODEL"],
        [2, 1, 1, 2, 0, "CLIP"],
        [3, 1, 1, 3, 0, "CLIP"],
        [4, 2, 0, 4, 1, "CONDITIONING"],
        [5, 1, 2, 5, 1, "VAE"],
        [6, 3, 0, 4, 2, "CONDITIONING"],
        [7, 4, 0, 5, 0, "LATENT"],
    ],
    "groups": [],
    "config": {},
    "extra": {"ds": {"scale": 1.5, "offset": [10, -20]}},
    "version": 0.4,
}


@pytest.fixture
def workflow_data():
    """Decoded JSON of the sample workflow (fresh copy per test)."""
    return copy.deepcopy(SAMPLE_WORKFLOW)


@pytest.fixture
def workflow_document(workflow_data):
    return WorkflowDocument.parse(workflow_data)


@pytest.fixture
def dangling_workflow_data(workflow_data):
    """Sample workflow with an extra link pointing at a node that does not exist."""
    workflow_data["links"].append([8, 1, 0, 99, 0, "MODEL"])
    workflow_data["last_link_id"] = 8
    return workflow_data


@pytest.fixture
def comfy_config():
    return ComfyConfig(
        api_base_url="http://comfy.test",
        ws_base_url="http://comfy.test",
        client_id="client-123",
        comfy_user="tester",
    )
