"""Tests for loading labelled tweets and the stratified train/test split."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from tweetclf.data.datasets import label_distribution, load_csv_dataset, stratified_split
from tweetclf.features.bow import BowConfig, TermFrequencyFeaturizer
from tweetclf.utils.errors import ConfigurationError, MalformedInputError

from conftest import make_tweets, write_csv


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class TestLoadCsvDataset:
    def test_drops_unlabelled_rows(self, tweets_csv: Path):
        data = load_csv_dataset(str(tweets_csv))
        assert len(data) == 7 * 12
        assert all(ex.label for ex in data)

    def test_keeps_only_text_and_label(self, tmp_path: Path):
        path = write_csv(
            tmp_path / "wide.csv",
            [("1", "learning java today", "learning", "@alice"), ("2", "coffee time", "coffee", "@bob")],
            columns=("id", "text", "class", "user"),
        )
        data = load_csv_dataset(str(path))
        assert [(ex.text, ex.label) for ex in data] == [
            ("learning java today", "learning"),
            ("coffee time", "coffee"),
        ]

    def test_whitespace_label_is_unlabelled(self, tmp_path: Path):
        path = write_csv(tmp_path / "ws.csv", [("a", "   "), ("b", "help")])
        data = load_csv_dataset(str(path))
        assert [ex.label for ex in data] == ["help"]

    def test_row_numbers_refer_to_source_rows(self, tmp_path: Path):
        path = write_csv(tmp_path / "rows.csv", [("a", ""), ("b", "help"), ("c", "job")])
        assert [ex.row for ex in load_csv_dataset(str(path))] == [2, 3]

    def test_custom_column_names(self, tmp_path: Path):
        path = write_csv(tmp_path / "cols.csv", [("hello", "x")], columns=("tweet", "category"))
        data = load_csv_dataset(str(path), text_col="tweet", label_col="category")
        assert data[0].text == "hello" and data[0].label == "x"

    def test_missing_text_column_fails(self, tmp_path: Path):
        path = write_csv(tmp_path / "no_text.csv", [("hello", "x")], columns=("body", "class"))
        with pytest.raises(MalformedInputError, match="text"):
            load_csv_dataset(str(path))

    def test_missing_label_column_fails(self, tmp_path: Path):
        path = write_csv(tmp_path / "no_label.csv", [("hello", "x")], columns=("text", "label"))
        with pytest.raises(MalformedInputError, match="class"):
            load_csv_dataset(str(path))

    def test_undecodable_text_names_the_line(self, tmp_path: Path):
        path = tmp_path / "latin1.csv"
        path.write_bytes(b"text,class\nhello,job\ncaf\xe9 java,coffee\n")
        with pytest.raises(MalformedInputError, match="line 3"):
            load_csv_dataset(str(path))

    def test_other_encodings_are_configurable(self, tmp_path: Path):
        path = tmp_path / "latin1.csv"
        path.write_bytes(b"text,class\ncaf\xe9 java,coffee\n")
        data = load_csv_dataset(str(path), encoding="latin-1")
        assert data[0].text == "café java"

    def test_labelled_row_without_text_names_the_row(self, tmp_path: Path):
        path = tmp_path / "short.csv"
        path.write_text("id,class,text\n1,job,hiring now\n2,help\n", encoding="utf-8")
        with pytest.raises(MalformedInputError, match="row 2") as excinfo:
            load_csv_dataset(str(path))
        assert excinfo.value.row == 2

    def test_every_row_wider_than_header_fails(self, tmp_path: Path):
        # Without a check pandas would take the first field as an implicit index.
        path = tmp_path / "wide_rows.csv"
        path.write_text("text,class\nhello world,oops,job\nneed help,oops,help\n", encoding="utf-8")
        with pytest.raises(MalformedInputError, match="cannot parse"):
            load_csv_dataset(str(path))

    def test_one_row_with_too_many_fields_fails(self, tmp_path: Path):
        path = tmp_path / "extra_field.csv"
        path.write_text("text,class\nhello,job\nneed help,help,extra\nbye,job\n", encoding="utf-8")
        with pytest.raises(MalformedInputError, match="cannot parse"):
            load_csv_dataset(str(path))

    def test_single_trailing_delimiter_is_tolerated(self, tmp_path: Path):
        path = tmp_path / "trailing.csv"
        path.write_text("text,class\nhello,job,\nhelp me,help,\n", encoding="utf-8")
        data = load_csv_dataset(str(path))
        assert [(ex.text, ex.label) for ex in data] == [("hello", "job"), ("help me", "help")]

    def test_blank_lines_keep_row_numbers_aligned(self, tmp_path: Path):
        path = tmp_path / "blank.csv"
        path.write_text("text,class\nhello,job\n\nhelp me,help\n", encoding="utf-8")
        data = load_csv_dataset(str(path))
        assert [(ex.label, ex.row) for ex in data] == [("job", 1), ("help", 3)]

    def test_error_row_counts_blank_lines(self, tmp_path: Path):
        path = tmp_path / "blank_short.csv"
        path.write_text("id,class,text\n1,job,hiring\n\n3,help\n", encoding="utf-8")
        with pytest.raises(MalformedInputError, match="row 3"):
            load_csv_dataset(str(path))

    def test_empty_file_fails(self, tmp_path: Path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(MalformedInputError):
            load_csv_dataset(str(path))

    def test_malformed_input_is_a_value_error(self, tmp_path: Path):
        path = write_csv(tmp_path / "no_text.csv", [("hello", "x")], columns=("body", "class"))
        with pytest.raises(ValueError):
            load_csv_dataset(str(path))


def test_label_distribution(tweets_csv: Path):
    dist = label_distribution(load_csv_dataset(str(tweets_csv)))
    assert list(dist.index) == sorted(dist.index)
    assert set(dist.values) == {12}
    assert dist.sum() == 84


# ---------------------------------------------------------------------------
# Stratified split
# ---------------------------------------------------------------------------

def _table(rows, min_doc_fraction=0.01):
    streams = [text.lower().split() for text, _ in rows]
    return TermFrequencyFeaturizer(BowConfig(min_doc_fraction=min_doc_fraction)).fit_transform(
        streams, [label for _, label in rows]
    )


@pytest.fixture
def uneven_table():
    rows = make_tweets(per_label=12)
    # Make the classes uneven: drop some coffee and help rows.
    rows = [r for i, r in enumerate(rows) if not (r[1] == "coffee" and i % 2) and not (r[1] == "help" and i % 3 == 0)]
    return _table(rows)


class TestStratifiedSplit:
    def test_partition_is_disjoint_and_complete(self, uneven_table):
        train, test = stratified_split(uneven_table, 0.7, seed=7)
        train_idx, test_idx = set(train.frame.index), set(test.frame.index)
        assert not train_idx & test_idx
        assert train_idx | test_idx == set(uneven_table.frame.index)
        assert len(train) + len(test) == len(uneven_table)

    def test_label_proportions_are_preserved(self, uneven_table):
        ratio = 0.7
        train, test = stratified_split(uneven_table, ratio, seed=3)
        full_counts = uneven_table.labels.value_counts()
        train_counts = train.labels.value_counts().reindex(full_counts.index, fill_value=0)
        test_counts = test.labels.value_counts().reindex(full_counts.index, fill_value=0)
        for label, n in full_counts.items():
            assert abs(train_counts[label] - ratio * n) <= 1
            assert abs(test_counts[label] - (1 - ratio) * n) <= 1

    def test_train_size_follows_ratio(self, uneven_table):
        train, _ = stratified_split(uneven_table, 0.7, seed=1)
        assert abs(len(train) - 0.7 * len(uneven_table)) <= 1

    def test_same_seed_same_split(self, uneven_table):
        a_train, a_test = stratified_split(uneven_table, 0.7, seed=42)
        b_train, b_test = stratified_split(uneven_table, 0.7, seed=42)
        assert list(a_train.frame.index) == list(b_train.frame.index)
        assert list(a_test.frame.index) == list(b_test.frame.index)

    def test_vocabulary_is_shared_by_both_parts(self, uneven_table):
        train, test = stratified_split(uneven_table, 0.7, seed=42)
        assert train.columns == test.columns == uneven_table.columns
        pd.testing.assert_frame_equal(train.frame, uneven_table.frame.loc[train.frame.index])

    @pytest.mark.parametrize("ratio", [0.0, 1.0, -0.5, 1.5])
    def test_invalid_ratio(self, uneven_table, ratio):
        with pytest.raises(ConfigurationError):
            stratified_split(uneven_table, ratio)

    def test_singleton_label_cannot_be_stratified(self):
        table = _table(make_tweets(per_label=4) + [("lonely tweet", "singleton")])
        with pytest.raises(ConfigurationError, match="singleton"):
            stratified_split(table, 0.7)

    def test_test_split_too_small_for_all_labels(self):
        table = _table(make_tweets(per_label=2))
        with pytest.raises(ConfigurationError):
            stratified_split(table, 0.9)
