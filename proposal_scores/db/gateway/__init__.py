from proposal_scores.db.gateway.proposals import ProposalGateway
from proposal_scores.db.gateway.votes import VoteGateway

__all__ = ["ProposalGateway", "VoteGateway"]
