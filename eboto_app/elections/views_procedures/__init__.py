"""JSON procedure views, one per ``/api/<procedureName>`` route.

All views are re-exported here so ``elections.urls`` can reference
``views_procedures.<view_name>`` without knowing the sub-module layout.
"""

from elections.views_procedures.elections import (
    add_commissioner_view,
    create_election_view,
    delete_election_view,
    edit_election_view,
    get_all_my_elections_view,
    get_commissioners_view,
    get_election_by_slug_view,
    get_election_page_view,
    remove_commissioner_view,
)
from elections.views_procedures.results import (
    get_realtime_results_view,
    get_voter_field_stats_in_realtime_view,
    get_voter_field_stats_view,
)
from elections.views_procedures.roster import (
    create_candidate_view,
    create_partylist_view,
    create_position_view,
    create_voter_field_view,
    create_voter_view,
    delete_candidate_view,
    delete_partylist_view,
    delete_position_view,
    delete_voter_field_view,
    delete_voter_view,
    edit_candidate_view,
    edit_partylist_view,
    edit_position_view,
    edit_voter_view,
    get_voters_by_election_slug_view,
    reorder_positions_view,
    upload_bulk_voter_view,
)
from elections.views_procedures.vote import cast_vote_view

__all__ = [
    "add_commissioner_view",
    "cast_vote_view",
    "create_candidate_view",
    "create_election_view",
    "create_partylist_view",
    "create_position_view",
    "create_voter_field_view",
    "create_voter_view",
    "delete_candidate_view",
    "delete_election_view",
    "delete_partylist_view",
    "delete_position_view",
    "delete_voter_field_view",
    "delete_voter_view",
    "edit_candidate_view",
    "edit_election_view",
    "edit_partylist_view",
    "edit_position_view",
    "edit_voter_view",
    "get_all_my_elections_view",
    "get_commissioners_view",
    "get_election_by_slug_view",
    "get_election_page_view",
    "get_realtime_results_view",
    "get_voter_field_stats_in_realtime_view",
    "get_voter_field_stats_view",
    "get_voters_by_election_slug_view",
    "remove_commissioner_view",
    "reorder_positions_view",
    "upload_bulk_voter_view",
]
