from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np

from family_match.embeddings import encoder
from family_match.embeddings.config import EmbeddingConfig
from family_match.embeddings.encoder import encode_batch, encode_text
from family_match.embeddings.precompute import run_precompute


def setup_function():
    encoder._models.clear()


@patch("family_match.embeddings.encoder.SentenceTransformer")
def test_encode_text_returns_vector(mock_st_cls):
    mock_st_cls.return_value.encode.return_value = np.ones(384, dtype=np.float32)
    vec = encode_text("7-year-old who loves painting")
    assert isinstance(vec, np.ndarray)
    assert vec.shape == (384,)
    mock_st_cls.assert_called_once_with("all-MiniLM-L6-v2")


@patch("family_match.embeddings.encoder.SentenceTransformer")
def test_model_loaded_once(mock_st_cls):
    mock_st_cls.return_value.encode.return_value = np.zeros(384)
    encode_text("a")
    encode_text("b")
    assert mock_st_cls.call_count == 1


@patch("family_match.embeddings.encoder.SentenceTransformer")
def test_encode_batch_shape(mock_st_cls):
    mock_st_cls.return_value.encode.return_value = np.zeros((3, 384))
    assert encode_batch(["a", "b", "c"]).shape == (3, 384)


def test_encode_batch_empty_skips_model():
    with patch("family_match.embeddings.encoder.SentenceTransformer") as mock_st_cls:
        assert encode_batch([]).shape == (0, 384)
        mock_st_cls.assert_not_called()


def test_precompute_writes_embeddings(tmp_path):
    candidates = tmp_path / "candidates.jsonl"
    candidates.write_text(
        '{"id": 1, "company_name": "Paint Pals", "category": "Art"}\n'
        '{"id": 2, "title": "Soccer Camp", "ages": "6-10"}\n'
    )
    config = EmbeddingConfig(
        candidates_path=candidates,
        embeddings_path=tmp_path / "out" / "embeddings.npy",
    )
    fake = MagicMock(return_value=np.ones((2, 384)))
    with patch("family_match.embeddings.precompute.encode_batch", fake):
        run_precompute(config)

    texts = fake.call_args.args[0]
    assert texts == ["paint pals art", "soccer camp 6-10"]
    assert np.load(config.embeddings_path).shape == (2, 384)
