from django.urls import path

from elections import views_procedures

app_name = "elections"

_PROCEDURES = {
    # Voting and results
    "castVote": views_procedures.cast_vote_view,
    "getRealtimeResults": views_procedures.get_realtime_results_view,
    "getVoterFieldStats": views_procedures.get_voter_field_stats_view,
    "getVoterFieldStatsInRealtime": views_procedures.get_voter_field_stats_in_realtime_view,
    # Elections
    "getElectionPage": views_procedures.get_election_page_view,
    "getElectionBySlug": views_procedures.get_election_by_slug_view,
    "getAllMyElections": views_procedures.get_all_my_elections_view,
    "createElection": views_procedures.create_election_view,
    "editElection": views_procedures.edit_election_view,
    "deleteElection": views_procedures.delete_election_view,
    "getCommissioners": views_procedures.get_commissioners_view,
    "addCommissioner": views_procedures.add_commissioner_view,
    "removeCommissioner": views_procedures.remove_commissioner_view,
    # Roster
    "createPosition": views_procedures.create_position_view,
    "editPosition": views_procedures.edit_position_view,
    "deletePosition": views_procedures.delete_position_view,
    "reorderPositions": views_procedures.reorder_positions_view,
    "createPartylist": views_procedures.create_partylist_view,
    "editPartylist": views_procedures.edit_partylist_view,
    "deletePartylist": views_procedures.delete_partylist_view,
    "createCandidate": views_procedures.create_candidate_view,
    "editCandidate": views_procedures.edit_candidate_view,
    "deleteCandidate": views_procedures.delete_candidate_view,
    "createVoterField": views_procedures.create_voter_field_view,
    "deleteVoterField": views_procedures.delete_voter_field_view,
    "createVoter": views_procedures.create_voter_view,
    "editVoter": views_procedures.edit_voter_view,
    "deleteVoter": views_procedures.delete_voter_view,
    "getVotersByElectionSlug": views_procedures.get_voters_by_election_slug_view,
    "uploadBulkVoter": views_procedures.upload_bulk_voter_view,
}

urlpatterns = [path(name, view, name=name) for name, view in _PROCEDURES.items()]
