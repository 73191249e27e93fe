def ats_check_prompt(*, job_description: str, cv_text: str) -> str:
    # Keys are camelCase because the frontend renders the analysis object as-is.
    return (
        "You are an expert ATS (Applicant Tracking System) analyzer. "
        "Analyze the following CV/resume against the job description.\n\n"
        "Return only valid JSON. No markdown, no extra text. Use this exact shape:\n"
        "{\n"
        '  "score": 0-100,\n'
        '  "matchAnalysis": {\n'
        '    "skillsMatch": 0-100,\n'
        '    "experienceRelevance": 0-100,\n'
        '    "educationAlignment": 0-100,\n'
        '    "keywordOptimization": 0-100\n'
        "  },\n"
        '  "strengths": string[],\n'
        '  "improvements": string[],\n'
        '  "missingKeywords": string[],\n'
        '  "overallAssessment": string\n'
        "}\n\n"
        "Rules:\n"
        "- score is an integer 0-100 for how well the CV matches the job requirements.\n"
        "- improvements are specific and actionable for this job.\n"
        "- missingKeywords are important job-description keywords absent from the CV.\n"
        "- overallAssessment is a friendly 2-3 sentence summary.\n"
        "- Use CV evidence; do not hallucinate.\n\n"
        "Job description:\n"
        f"{job_description or ''}\n\n"
        "CV/Resume content:\n"
        "-----\n"
        f"{cv_text or ''}\n"
        "-----\n"
    )
